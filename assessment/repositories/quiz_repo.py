"""
Quiz Repository

Data access layer for Quiz and QuizQuestion models, including the answer
key lookup used by grading.
"""

from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from assessment.repositories.base import BaseRepository
from assessment.models.quiz import Quiz
from assessment.models.quiz_question import QuizQuestion


class QuizRepository(BaseRepository[Quiz]):
    """Repository for Quiz model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Quiz, db)


class QuizQuestionRepository(BaseRepository[QuizQuestion]):
    """Repository for QuizQuestion model."""

    def __init__(self, db: AsyncSession):
        super().__init__(QuizQuestion, db)

    async def get_answer_key(self, quiz_id: UUID) -> List[QuizQuestion]:
        """Questions of a quiz with their options eagerly loaded."""
        stmt = (
            select(self.model)
            .options(selectinload(self.model.options))
            .where(self.model.quiz_id == quiz_id)
            .order_by(self.model.display_order)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

