"""
Grading Reference Store

Read-only access to a quiz's answer key. Reads go through the read pool
(ReadSessionLocal), never through a submission's transaction, so no lock
is held while answers are being graded and the read never competes with
write connections.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assessment.core.exceptions import ReferenceUnavailable, ResourceTimeout
from assessment.models.quiz_question import QuestionType, QuizQuestion
from assessment.repositories.quiz_repo import QuizQuestionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradingReference:
    """Answer key for one question."""
    question_id: UUID
    question_kind: str
    prompt_text: str
    correct_option_id: Optional[UUID] = None
    correct_text: Optional[str] = None


def build_reference(question: QuizQuestion) -> GradingReference:
    kind = question.question_type
    correct_option_id = None
    correct_text = None

    if kind == QuestionType.MULTIPLE_CHOICE.value:
        # Options are loaded in display order; the first flagged one wins
        correct = next((o for o in question.options if o.is_correct), None)
        correct_option_id = correct.id if correct else None
    elif kind == QuestionType.FILL_BLANK.value:
        correct_text = question.correct_answer

    return GradingReference(
        question_id=question.id,
        question_kind=kind,
        prompt_text=question.question_text or "",
        correct_option_id=correct_option_id,
        correct_text=correct_text,
    )


class GradingReferenceStore:
    """Loads answer keys through the read pool."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def fetch_references(self, quiz_id: UUID) -> Dict[UUID, GradingReference]:
        """
        Return the answer key of a quiz keyed by question id.

        Raises:
            ReferenceUnavailable: If the quiz has no questions or the
                lookup itself fails
            ResourceTimeout: If no read connection became available
        """
        try:
            async with self.session_factory() as session:
                questions = await QuizQuestionRepository(session).get_answer_key(quiz_id)
                references = {q.id: build_reference(q) for q in questions}
        except PoolTimeoutError as e:
            logger.error(f"Read pool exhausted loading answer key for quiz {quiz_id}")
            raise ResourceTimeout(
                f"No read connection available for quiz {quiz_id}",
                stage="references",
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Answer key lookup failed for quiz {quiz_id}: {e}")
            raise ReferenceUnavailable(
                f"Could not load answer key for quiz {quiz_id}"
            ) from e

        if not references:
            raise ReferenceUnavailable(f"Quiz {quiz_id} has no questions")

        logger.debug(f"Loaded {len(references)} references for quiz {quiz_id}")
        return references
