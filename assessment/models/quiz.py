from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from .base import BaseModel

class Quiz(BaseModel):
    __tablename__ = "quizzes"

    # Quiz info
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Relationships
    questions = relationship("QuizQuestion", back_populates="quiz", cascade="all, delete-orphan", order_by="QuizQuestion.display_order")
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")
