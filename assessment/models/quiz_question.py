from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel

class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_BLANK = "fill_blank"
    ESSAY = "essay"
    WRITING = "writing"
    SPEAKING = "speaking"

class QuizQuestion(BaseModel):
    __tablename__ = "quiz_questions"

    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)

    # Stored as plain text: rows with kinds this service does not grade may exist
    question_type = Column(String(30), nullable=False)
    question_text = Column(Text, nullable=False)  # Also the AI grading prompt

    # Answer key for fill_blank; multiple_choice uses question_options.is_correct
    correct_answer = Column(Text, nullable=True)

    display_order = Column(Integer, default=0, nullable=False)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")
    options = relationship("QuestionOption", back_populates="question", cascade="all, delete-orphan", order_by="QuestionOption.display_order")
    answers = relationship("UserAnswer", back_populates="question", cascade="all, delete-orphan")


class QuestionOption(BaseModel):
    __tablename__ = "question_options"

    question_id = Column(Uuid(as_uuid=True), ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    question = relationship("QuizQuestion", back_populates="options")
