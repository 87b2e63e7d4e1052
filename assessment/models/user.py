from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from .base import BaseModel

class User(BaseModel):
    __tablename__ = "users"

    # Identity is owned by the auth service; only what attempts need lives here
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    quiz_attempts = relationship("QuizAttempt", back_populates="user", cascade="all, delete-orphan")
