"""HTTP tests for the attempt endpoints."""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from assessment.core.exceptions import (
    GradingFailed,
    InvalidSubmission,
    ResourceTimeout,
    SubmissionError,
)
from assessment.core.security import create_access_token
from assessment.db.database import get_db
from assessment.main import app
from assessment.models import AttemptStatus
from assessment.schemas.attempt import AttemptStatus as ResponseAttemptStatus

PREFIX = "/api/v1"


def auth(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def client(session_factory, make_engine, fake_adapter):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.grading_engine = make_engine(fake_adapter)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def mc_quiz(make_quiz):
    return await make_quiz(
        {"question_type": "multiple_choice", "options": [("A", True), ("B", False)]},
        {"question_type": "multiple_choice", "options": [("A", False), ("B", True)]},
    )


async def test_root(client):
    r = await client.get("/")

    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_submit_grades_and_returns_score(client, mc_quiz, user_id):
    r = await client.post(
        f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit",
        json={"answers": [
            {"question_id": str(mc_quiz.question_ids[0]), "option_id": str(mc_quiz.option_ids[0][0])},
            {"question_id": str(mc_quiz.question_ids[1]), "option_id": str(mc_quiz.option_ids[1][0])},
        ]},
        headers=auth(user_id),
    )

    assert r.status_code == 201
    body = r.json()
    assert body["final_score"] == 50.0
    assert body["graded_count"] == 2
    uuid.UUID(body["attempt_id"])


async def test_submit_requires_token(client, mc_quiz):
    r = await client.post(f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit", json={"answers": []})

    assert r.status_code in (401, 403)


async def test_submit_rejects_bad_token(client, mc_quiz):
    r = await client.post(
        f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit",
        json={"answers": []},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert r.status_code == 401


async def test_grading_failure_maps_to_502(client, make_quiz, fake_adapter, user_id):
    quiz = await make_quiz({"question_type": "essay"})
    fake_adapter.fail_on.add("essay text")

    r = await client.post(
        f"{PREFIX}/quizzes/{quiz.quiz_id}/submit",
        json={"answers": [{"question_id": str(quiz.question_ids[0]), "answer_text": "essay text"}]},
        headers=auth(user_id),
    )

    assert r.status_code == 502
    assert r.json() == {"detail": "Submission failed, please try again.", "stage": "grading"}


async def test_empty_quiz_maps_to_404(client, make_quiz, user_id):
    quiz = await make_quiz()

    r = await client.post(
        f"{PREFIX}/quizzes/{quiz.quiz_id}/submit",
        json={"answers": []},
        headers=auth(user_id),
    )

    assert r.status_code == 404
    assert r.json()["stage"] == "references"


class RaisingEngine:
    def __init__(self, error):
        self.error = error

    async def submit_attempt(self, user_id, quiz_id, submissions):
        raise self.error


@pytest.mark.parametrize("error, status_code", [
    (InvalidSubmission("bad"), 400),
    (ResourceTimeout("pool exhausted"), 503),
    (GradingFailed("model down"), 502),
    (SubmissionError("disk full", stage="persist"), 500),
])
async def test_submission_errors_map_to_status(client, user_id, error, status_code):
    app.state.grading_engine = RaisingEngine(error)

    r = await client.post(
        f"{PREFIX}/quizzes/{uuid.uuid4()}/submit",
        json={"answers": []},
        headers=auth(user_id),
    )

    assert r.status_code == status_code
    assert r.json() == {"detail": "Submission failed, please try again.", "stage": error.stage}


async def test_history_and_detail(client, mc_quiz, user_id):
    submit = await client.post(
        f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit",
        json={"answers": [
            {"question_id": str(mc_quiz.question_ids[0]), "option_id": str(mc_quiz.option_ids[0][0])},
        ]},
        headers=auth(user_id),
    )
    attempt_id = submit.json()["attempt_id"]

    history = await client.get(f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/attempts", headers=auth(user_id))
    assert history.status_code == 200
    assert history.json()["total"] == 1
    [summary] = history.json()["attempts"]
    assert summary["id"] == attempt_id
    assert summary["status"] == "completed"
    assert summary["final_score"] == 100.0

    detail = await client.get(f"{PREFIX}/attempts/{attempt_id}", headers=auth(user_id))
    assert detail.status_code == 200
    [graded] = detail.json()["answers"]
    assert graded["question_id"] == str(mc_quiz.question_ids[0])
    assert graded["is_correct"] is True
    assert graded["ai_score"] == 100.0


async def test_attempt_of_another_user_is_hidden(client, mc_quiz, user_id):
    submit = await client.post(
        f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit",
        json={"answers": []},
        headers=auth(user_id),
    )
    attempt_id = submit.json()["attempt_id"]

    r = await client.get(f"{PREFIX}/attempts/{attempt_id}", headers=auth(uuid.uuid4()))

    assert r.status_code == 404


async def test_history_of_unknown_quiz_is_404(client, user_id):
    r = await client.get(f"{PREFIX}/quizzes/{uuid.uuid4()}/attempts", headers=auth(user_id))

    assert r.status_code == 404
    assert r.json()["detail"] == "Quiz not found"


async def test_history_of_quiz_without_attempts_is_empty(client, mc_quiz, user_id):
    r = await client.get(f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/attempts", headers=auth(user_id))

    assert r.status_code == 200
    assert r.json() == {"attempts": [], "total": 0}


@pytest.mark.parametrize("body", [
    {"answers": [{"question_id": str(uuid.uuid4()), "option_id": str(uuid.uuid4()), "answer_text": "x"}]},
    {"answers": [{"option_id": str(uuid.uuid4())}]},
    {"answers": "not a list"},
    {},
])
async def test_malformed_submission_body_is_400_with_stage(client, mc_quiz, user_id, body):
    r = await client.post(f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/submit", json=body, headers=auth(user_id))

    assert r.status_code == 400
    assert r.json() == {"detail": "Submission failed, please try again.", "stage": "validation"}


async def test_bad_query_on_other_routes_keeps_default_422(client, mc_quiz, user_id):
    r = await client.get(
        f"{PREFIX}/quizzes/{mc_quiz.quiz_id}/attempts",
        params={"limit": 0},
        headers=auth(user_id),
    )

    assert r.status_code == 422


def test_response_status_values_match_stored_values():
    assert [s.value for s in ResponseAttemptStatus] == [s.value for s in AttemptStatus]
