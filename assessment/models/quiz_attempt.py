from sqlalchemy import Column, Float, ForeignKey, DateTime, Enum, Uuid, func
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
import enum
from assessment.db.database import Base

class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)

    # in_progress -> completed, exactly once
    status = Column(
        Enum(
            AttemptStatus,
            name="attempt_status",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=AttemptStatus.IN_PROGRESS,
        nullable=False,
        index=True
    )

    # Results (nullable because filled after completion)
    final_score = Column(Float, nullable=True)

    # Timing
    start_time = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True
    )
    end_time = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="quiz_attempts")
    quiz = relationship("Quiz", back_populates="attempts")
    answers = relationship("UserAnswer", back_populates="attempt", cascade="all, delete-orphan")
