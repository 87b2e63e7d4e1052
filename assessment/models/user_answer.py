from sqlalchemy import Column, Boolean, Float, ForeignKey, Text, DateTime, Uuid, func
from sqlalchemy.orm import relationship
import uuid
from assessment.db.database import Base

class UserAnswer(Base):
    """A graded answer. Only ever written for a completed attempt."""

    __tablename__ = "user_answers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    attempt_id = Column(Uuid(as_uuid=True), ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Uuid(as_uuid=True), ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)

    # Submission echoed back
    option_id = Column(Uuid(as_uuid=True), nullable=True)
    answer_text = Column(Text, nullable=True)
    answer_media_ref = Column(Text, nullable=True)  # Storage key of recorded audio

    # Grading
    is_correct = Column(Boolean, nullable=True)  # Only deterministic kinds set this
    ai_score = Column(Float, default=0, nullable=False)
    ai_feedback = Column(Text, nullable=True)

    answered_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    attempt = relationship("QuizAttempt", back_populates="answers")
    question = relationship("QuizQuestion", back_populates="answers")
