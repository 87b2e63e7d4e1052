"""
Attempt Repository

Data access layer for QuizAttempt and UserAnswer models.

The write methods used by submission (create_in_progress, mark_completed,
create_bulk) run on whatever session they are given; during a submission
that is the session bound to the exclusive transaction.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, delete, insert
from sqlalchemy.orm import selectinload

from assessment.repositories.base import BaseRepository
from assessment.models.quiz_attempt import QuizAttempt, AttemptStatus
from assessment.models.user_answer import UserAnswer


class AttemptTransitionError(Exception):
    """An attempt was not in the state a transition requires."""


class QuizAttemptRepository(BaseRepository[QuizAttempt]):
    """Repository for QuizAttempt model."""

    def __init__(self, db: AsyncSession):
        super().__init__(QuizAttempt, db)

    async def create_in_progress(self, user_id: UUID, quiz_id: UUID) -> QuizAttempt:
        return await self.create(
            user_id=user_id,
            quiz_id=quiz_id,
            status=AttemptStatus.IN_PROGRESS,
            start_time=datetime.now(timezone.utc),
        )

    async def mark_completed(
        self,
        attempt_id: UUID,
        final_score: float,
        end_time: Optional[datetime] = None,
    ) -> None:
        """The single allowed transition: in_progress -> completed."""
        stmt = (
            update(self.model)
            .where(
                self.model.id == attempt_id,
                self.model.status == AttemptStatus.IN_PROGRESS,
            )
            .values(
                status=AttemptStatus.COMPLETED,
                final_score=final_score,
                end_time=end_time or datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise AttemptTransitionError(
                f"Attempt {attempt_id} is not in progress"
            )

    async def get_user_attempts(
        self,
        user_id: UUID,
        quiz_id: UUID,
        skip: int = 0,
        limit: int = 20
    ) -> List[QuizAttempt]:
        stmt = (
            select(self.model)
            .where(
                self.model.user_id == user_id,
                self.model.quiz_id == quiz_id
            )
            .order_by(self.model.start_time.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_user_attempts(self, user_id: UUID, quiz_id: UUID) -> int:
        stmt = (
            select(func.count(self.model.id))
            .where(
                self.model.user_id == user_id,
                self.model.quiz_id == quiz_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def get_with_answers(self, attempt_id: UUID) -> Optional[QuizAttempt]:
        stmt = (
            select(self.model)
            .options(selectinload(self.model.answers))
            .where(self.model.id == attempt_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_stale_in_progress(self, started_before: datetime) -> int:
        """Remove attempts stranded in_progress since before the cutoff."""
        stmt = (
            delete(self.model)
            .where(
                self.model.status == AttemptStatus.IN_PROGRESS,
                self.model.start_time < started_before,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0


class UserAnswerRepository(BaseRepository[UserAnswer]):
    """Repository for UserAnswer model."""

    def __init__(self, db: AsyncSession):
        super().__init__(UserAnswer, db)

    async def create_bulk(self, answers: List[Dict[str, Any]]) -> int:
        """Insert all graded answers in one executemany round trip."""
        if not answers:
            return 0
        await self.db.execute(insert(self.model), answers)
        return len(answers)
