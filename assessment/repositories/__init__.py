from assessment.repositories.base import BaseRepository
from assessment.repositories.quiz_repo import QuizRepository, QuizQuestionRepository
from assessment.repositories.attempt_repo import (
    QuizAttemptRepository,
    UserAnswerRepository,
    AttemptTransitionError,
)

__all__ = [
    "BaseRepository",
    "QuizRepository",
    "QuizQuestionRepository",
    "QuizAttemptRepository",
    "UserAnswerRepository",
    "AttemptTransitionError",
]
