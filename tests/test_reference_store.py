import uuid

import pytest
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

from assessment.core.exceptions import ReferenceUnavailable, ResourceTimeout
from assessment.repositories.quiz_repo import QuizQuestionRepository
from assessment.services.reference_store import GradingReferenceStore


async def test_references_carry_answer_key(make_quiz, session_factory):
    quiz = await make_quiz(
        {
            "question_type": "multiple_choice",
            "question_text": "2 + 2?",
            "options": [("3", False), ("4", True), ("four", True)],
        },
        {"question_type": "fill_blank", "question_text": "Capital of France", "correct_answer": "Paris"},
        {"question_type": "speaking", "question_text": "Read: good morning"},
    )

    refs = await GradingReferenceStore(session_factory).fetch_references(quiz.quiz_id)

    mc, blank, speaking = (refs[qid] for qid in quiz.question_ids)
    # First correct option in display order
    assert mc.correct_option_id == quiz.option_ids[0][1]
    assert mc.correct_text is None
    assert blank.correct_text == "Paris"
    assert blank.correct_option_id is None
    assert speaking.question_kind == "speaking"
    assert speaking.prompt_text == "Read: good morning"


async def test_references_are_immutable(make_quiz, session_factory):
    quiz = await make_quiz({"question_type": "essay"})
    refs = await GradingReferenceStore(session_factory).fetch_references(quiz.quiz_id)

    with pytest.raises(AttributeError):
        refs[quiz.question_ids[0]].prompt_text = "changed"


async def test_unknown_quiz_is_unavailable(session_factory):
    with pytest.raises(ReferenceUnavailable):
        await GradingReferenceStore(session_factory).fetch_references(uuid.uuid4())


async def test_lookup_failure_is_unavailable(session_factory, monkeypatch):
    async def broken(self, quiz_id):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(QuizQuestionRepository, "get_answer_key", broken)

    with pytest.raises(ReferenceUnavailable) as exc_info:
        await GradingReferenceStore(session_factory).fetch_references(uuid.uuid4())

    assert isinstance(exc_info.value.__cause__, OperationalError)


async def test_pool_timeout_is_a_resource_timeout(session_factory, monkeypatch):
    async def starved(self, quiz_id):
        raise PoolTimeoutError("QueuePool limit of size 1 overflow 0 reached")

    monkeypatch.setattr(QuizQuestionRepository, "get_answer_key", starved)

    with pytest.raises(ResourceTimeout) as exc_info:
        await GradingReferenceStore(session_factory).fetch_references(uuid.uuid4())

    assert exc_info.value.stage == "references"
    assert isinstance(exc_info.value.__cause__, PoolTimeoutError)
