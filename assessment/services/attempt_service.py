"""
Attempt Service

Quiz submission and grading, plus read access to past attempts.

Submission runs in two write phases around a read phase:

    acquire tx ─► _open_attempt (insert in_progress)
               ─► fetch references         (read pool, no locks held)
               ─► grade all answers        (concurrent, all-or-nothing)
               ─► aggregate
               ─► _finalize_attempt (bulk insert answers, mark completed)
               ─► commit

Any failure after acquisition rolls the whole transaction back, so a
failed submission leaves no rows behind.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.ai.grader import AIGradingAdapter
from assessment.core.exceptions import (
    GradingFailed,
    InvalidSubmission,
    ReferenceUnavailable,
    SubmissionError,
)
from assessment.db.transaction import Transaction, TransactionManager
from assessment.models.quiz_attempt import QuizAttempt
from assessment.repositories.attempt_repo import QuizAttemptRepository, UserAnswerRepository
from assessment.repositories.quiz_repo import QuizRepository
from assessment.schemas.attempt import AnswerSubmission
from assessment.services.grading_strategies import GradeOutcome, grade, is_scorable_kind
from assessment.services.reference_store import GradingReference, GradingReferenceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    attempt_id: UUID
    final_score: float
    graded_count: int


@dataclass(frozen=True)
class GradedAnswer:
    submission: AnswerSubmission
    reference: GradingReference
    outcome: GradeOutcome

    def to_row(self, attempt_id: UUID) -> Dict[str, Any]:
        return {
            "attempt_id": attempt_id,
            "question_id": self.reference.question_id,
            "option_id": self.submission.option_id,
            "answer_text": self.submission.answer_text,
            "answer_media_ref": self.submission.answer_media_ref,
            "is_correct": self.outcome.is_correct,
            "ai_score": self.outcome.score,
            "ai_feedback": self.outcome.feedback,
        }


def aggregate_scores(scores: Iterable[float]) -> float:
    """Mean of the scores, 0 for none. fsum keeps it independent of order."""
    scores = list(scores)
    if not scores:
        return 0.0
    return math.fsum(scores) / len(scores)


def _coerce_uuid(value: Union[UUID, str], name: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidSubmission(f"{name} is not a valid id: {value!r}") from e


# ============================================================
# SUBMISSION ENGINE
# ============================================================

class AttemptGradingEngine:
    """Turns a list of answers into a persisted, scored attempt."""

    def __init__(
        self,
        transactions: TransactionManager,
        references: GradingReferenceStore,
        adapter: AIGradingAdapter,
        acquire_timeout: Optional[float] = None,
    ):
        self.transactions = transactions
        self.references = references
        self.adapter = adapter
        self.acquire_timeout = acquire_timeout
        self._inflight: Set[asyncio.Task] = set()

    async def submit_attempt(
        self,
        user_id: Union[UUID, str],
        quiz_id: Union[UUID, str],
        submissions: Sequence[Union[AnswerSubmission, Dict[str, Any]]],
    ) -> SubmissionResult:
        """
        Create, grade and persist one attempt.

        The work runs in its own task. If the caller goes away the task
        keeps going, and the transaction still commits or rolls back.

        Raises:
            InvalidSubmission: Malformed input, nothing touched
            ResourceTimeout: No connection within the acquire timeout
            ReferenceUnavailable: Quiz has no readable answer key
            GradingFailed: At least one answer could not be graded
            SubmissionError: Any other failure (stage says where)
        """
        user_id, quiz_id, answers = self._validate(user_id, quiz_id, submissions)

        task = asyncio.ensure_future(self._run(user_id, quiz_id, answers))
        self._inflight.add(task)
        task.add_done_callback(self._on_done)
        return await asyncio.shield(task)

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        # Retrieve so an abandoned submission does not warn at shutdown
        error = task.exception()
        if error is not None and not isinstance(error, SubmissionError):
            logger.error(f"Submission task ended with unexpected error: {error!r}")

    async def drain(self) -> None:
        """Wait for submissions whose callers have already gone away."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    # ------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------

    @staticmethod
    def _validate(
        user_id: Union[UUID, str],
        quiz_id: Union[UUID, str],
        submissions: Sequence[Union[AnswerSubmission, Dict[str, Any]]],
    ) -> Tuple[UUID, UUID, List[AnswerSubmission]]:
        user_uuid = _coerce_uuid(user_id, "user_id")
        quiz_uuid = _coerce_uuid(quiz_id, "quiz_id")

        if not isinstance(submissions, (list, tuple)):
            raise InvalidSubmission("submissions must be a list of answers")

        answers = []
        for index, item in enumerate(submissions):
            if isinstance(item, AnswerSubmission):
                answers.append(item)
                continue
            try:
                answers.append(AnswerSubmission.model_validate(item))
            except ValidationError as e:
                raise InvalidSubmission(f"Answer {index} is malformed: {e}") from e
        return user_uuid, quiz_uuid, answers

    # ------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------

    async def _run(
        self,
        user_id: UUID,
        quiz_id: UUID,
        answers: List[AnswerSubmission],
    ) -> SubmissionResult:
        try:
            return await self._run_in_transaction(user_id, quiz_id, answers)
        except SubmissionError:
            raise
        except Exception as e:
            # Raised while connecting or releasing, outside the pipeline stages
            logger.exception(f"Database failure during submission for quiz {quiz_id}")
            raise SubmissionError(f"Database unavailable: {e}", stage="connection") from e

    async def _run_in_transaction(
        self,
        user_id: UUID,
        quiz_id: UUID,
        answers: List[AnswerSubmission],
    ) -> SubmissionResult:
        async with self.transactions.acquire(self.acquire_timeout) as tx:
            attempt_id: Optional[UUID] = None
            stage = "create"
            try:
                attempt_id = await self._open_attempt(tx, user_id, quiz_id)
                logger.info(f"Attempt {attempt_id} created for quiz {quiz_id}")

                stage = "references"
                references = await self.references.fetch_references(quiz_id)

                stage = "grading"
                graded = await self._grade_all(attempt_id, references, answers)

                stage = "aggregate"
                final_score = aggregate_scores(g.outcome.score for g in graded)

                stage = "persist"
                await self._finalize_attempt(tx, attempt_id, graded, final_score)

                stage = "commit"
                await tx.commit()
            except SubmissionError as e:
                if e.attempt_id is None:
                    e.attempt_id = attempt_id
                logger.warning(f"Submission for quiz {quiz_id} failed: {e}")
                raise
            except Exception as e:
                logger.exception(f"Unexpected failure at stage '{stage}' for attempt {attempt_id}")
                raise SubmissionError(
                    f"Unexpected failure: {e}",
                    stage=stage,
                    attempt_id=attempt_id,
                ) from e

        logger.info(
            f"Attempt {attempt_id} completed: score {final_score:.2f} "
            f"over {len(graded)} answers"
        )
        return SubmissionResult(
            attempt_id=attempt_id,
            final_score=final_score,
            graded_count=len(graded),
        )

    async def _open_attempt(self, tx: Transaction, user_id: UUID, quiz_id: UUID) -> UUID:
        """Phase one: the only write before grading."""
        try:
            attempt = await QuizAttemptRepository(tx.session).create_in_progress(user_id, quiz_id)
        except IntegrityError as e:
            raise ReferenceUnavailable(f"Quiz {quiz_id} does not exist") from e
        return attempt.id

    async def _grade_all(
        self,
        attempt_id: UUID,
        references: Dict[UUID, GradingReference],
        answers: List[AnswerSubmission],
    ) -> List[GradedAnswer]:
        work: List[Tuple[AnswerSubmission, GradingReference]] = []
        for answer in answers:
            reference = references.get(answer.question_id)
            if reference is None:
                logger.debug(f"Dropping answer for unknown question {answer.question_id}")
                continue
            if not is_scorable_kind(reference.question_kind):
                logger.debug(
                    f"Skipping question {reference.question_id} "
                    f"of unsupported kind '{reference.question_kind}'"
                )
                continue
            work.append((answer, reference))

        logger.info(f"Attempt {attempt_id}: grading {len(work)} of {len(answers)} answers")

        # Barrier: every answer finishes (or fails) before anything is decided
        results = await asyncio.gather(
            *(grade(reference, answer, self.adapter) for answer, reference in work),
            return_exceptions=True,
        )

        failures = [
            (reference.question_id, result)
            for (_, reference), result in zip(work, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            question_id, first = failures[0]
            raise GradingFailed(
                f"{len(failures)} of {len(work)} answers could not be graded "
                f"(first: question {question_id}: {first})",
                attempt_id=attempt_id,
                failed_count=len(failures),
                question_id=question_id,
            ) from first

        return [
            GradedAnswer(submission=answer, reference=reference, outcome=outcome)
            for (answer, reference), outcome in zip(work, results)
        ]

    async def _finalize_attempt(
        self,
        tx: Transaction,
        attempt_id: UUID,
        graded: List[GradedAnswer],
        final_score: float,
    ) -> None:
        """Phase two: answers first, then the status transition."""
        await UserAnswerRepository(tx.session).create_bulk(
            [g.to_row(attempt_id) for g in graded]
        )
        await QuizAttemptRepository(tx.session).mark_completed(attempt_id, final_score)


# ============================================================
# ATTEMPT READS
# ============================================================

class AttemptNotFoundError(Exception):
    pass


class QuizNotFoundError(Exception):
    pass


class AttemptService:
    """Read side: a user's attempt history and attempt detail."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.quiz_repo = QuizRepository(db)
        self.attempt_repo = QuizAttemptRepository(db)

    async def list_attempts(
        self,
        user_id: UUID,
        quiz_id: UUID,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[QuizAttempt], int]:
        if await self.quiz_repo.get_by_id(quiz_id) is None:
            raise QuizNotFoundError("Quiz not found")

        attempts = await self.attempt_repo.get_user_attempts(user_id, quiz_id, skip, limit)
        total = await self.attempt_repo.count_user_attempts(user_id, quiz_id)
        return attempts, total

    async def get_attempt(self, attempt_id: UUID, user_id: UUID) -> QuizAttempt:
        attempt = await self.attempt_repo.get_with_answers(attempt_id)
        if not attempt or attempt.user_id != user_id:
            raise AttemptNotFoundError("Attempt not found")
        return attempt
