from assessment.models.base import Base
from assessment.models.user import User
from assessment.models.quiz import Quiz
from assessment.models.quiz_question import QuizQuestion, QuestionOption, QuestionType
from assessment.models.quiz_attempt import QuizAttempt, AttemptStatus
from assessment.models.user_answer import UserAnswer

__all__ = [
    "Base",
    "User",
    "Quiz",
    "QuizQuestion",
    "QuestionOption",
    "QuestionType",
    "QuizAttempt",
    "AttemptStatus",
    "UserAnswer",
]
