import asyncio
import os
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

# Settings are read at import time; point them at SQLite before anything loads
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'assessment_test.db')}",
)
os.environ.setdefault("AI_EVAL_MOCK", "true")

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from assessment.ai.grader import AIGrade, AIGradingAdapter, AIGradingError
from assessment.db.database import Base
from assessment.db.transaction import TransactionManager
from assessment.models import QuestionOption, Quiz, QuizQuestion, User
from assessment.services.attempt_service import AttemptGradingEngine
from assessment.services.reference_store import GradingReferenceStore


# ============================================================
# FAKE AI GRADER
# ============================================================

class FakeGradingAdapter(AIGradingAdapter):
    """
    Scripted grader.

    writing_scores maps answer text to a score (default_score otherwise).
    fail_on holds texts or audio refs that raise AIGradingError.
    delay, if set, is awaited before each grade.
    """

    def __init__(self, default_score: float = 80, feedback: str = "Good"):
        self.default_score = default_score
        self.feedback = feedback
        self.writing_scores: Dict[str, float] = {}
        self.speaking_scores: Dict[str, float] = {}
        self.fail_on: set = set()
        self.delay = None
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _pause(self, key):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.delay is not None:
                await asyncio.sleep(self.delay(key))
            else:
                await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

    async def grade_writing(self, prompt: str, answer: str) -> AIGrade:
        self.calls.append(("writing", prompt, answer))
        await self._pause(answer)
        if answer in self.fail_on:
            raise AIGradingError(f"Model unavailable for {answer!r}")
        return AIGrade(score=self.writing_scores.get(answer, self.default_score), feedback=self.feedback)

    async def grade_speaking(self, prompt: str, audio_ref: str) -> AIGrade:
        self.calls.append(("speaking", prompt, audio_ref))
        await self._pause(audio_ref)
        if audio_ref in self.fail_on:
            raise AIGradingError(f"Transcription failed for {audio_ref!r}")
        return AIGrade(score=self.speaking_scores.get(audio_ref, self.default_score), feedback=self.feedback)


# ============================================================
# DATABASE
# ============================================================

@pytest.fixture
async def db_engine(tmp_path) -> AsyncEngine:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'grading.db'}",
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=5,
        pool_timeout=5,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def read_engine(db_engine) -> AsyncEngine:
    """Second engine on the same database file, like ReadSessionLocal in production."""
    engine = create_async_engine(
        db_engine.url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=5,
        pool_timeout=5,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
def read_session_factory(read_engine):
    return async_sessionmaker(bind=read_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def user_id(session_factory) -> UUID:
    async with session_factory() as session:
        user = User(email="student@example.com", full_name="Test Student")
        session.add(user)
        await session.commit()
        return user.id


@dataclass
class SeededQuiz:
    quiz_id: UUID
    question_ids: List[UUID] = field(default_factory=list)
    option_ids: List[List[UUID]] = field(default_factory=list)


@pytest.fixture
def make_quiz(session_factory):
    """
    Create a quiz from question definitions.

    Each definition is a dict of QuizQuestion columns plus an optional
    "options" list of (text, is_correct) pairs.
    """
    async def _make(*definitions) -> SeededQuiz:
        async with session_factory() as session:
            quiz = Quiz(title="Unit test quiz")
            session.add(quiz)
            await session.flush()

            seeded = SeededQuiz(quiz_id=quiz.id)
            for order, definition in enumerate(definitions):
                definition = dict(definition)
                options = definition.pop("options", [])
                definition.setdefault("question_text", f"Question {order + 1}")
                question = QuizQuestion(quiz_id=quiz.id, display_order=order, **definition)
                session.add(question)
                await session.flush()

                option_ids = []
                for i, (text, is_correct) in enumerate(options):
                    option = QuestionOption(
                        question_id=question.id,
                        option_text=text,
                        is_correct=is_correct,
                        display_order=i,
                    )
                    session.add(option)
                    await session.flush()
                    option_ids.append(option.id)

                seeded.question_ids.append(question.id)
                seeded.option_ids.append(option_ids)

            await session.commit()
            return seeded

    return _make


@pytest.fixture
def fake_adapter() -> FakeGradingAdapter:
    return FakeGradingAdapter()


@pytest.fixture
def make_engine(db_engine, read_session_factory):
    def _make(adapter: AIGradingAdapter, acquire_timeout: float = 5.0) -> AttemptGradingEngine:
        return AttemptGradingEngine(
            transactions=TransactionManager(db_engine, default_timeout=acquire_timeout),
            references=GradingReferenceStore(read_session_factory),
            adapter=adapter,
        )
    return _make


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return (await session.execute(stmt)).scalar_one()
    return _count

