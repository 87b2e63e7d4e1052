from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from assessment.models import AttemptStatus, QuizAttempt
from assessment.tasks.attempt_tasks import reconcile_stale_attempts


async def test_sweep_removes_only_old_in_progress_attempts(make_quiz, session_factory, user_id):
    quiz = await make_quiz({"question_type": "essay"})
    now = datetime.now(timezone.utc)

    async with session_factory() as session:
        stale = QuizAttempt(user_id=user_id, quiz_id=quiz.quiz_id,
                            status=AttemptStatus.IN_PROGRESS, start_time=now - timedelta(hours=3))
        fresh = QuizAttempt(user_id=user_id, quiz_id=quiz.quiz_id,
                            status=AttemptStatus.IN_PROGRESS, start_time=now - timedelta(minutes=5))
        finished = QuizAttempt(user_id=user_id, quiz_id=quiz.quiz_id,
                               status=AttemptStatus.COMPLETED, final_score=90.0,
                               start_time=now - timedelta(days=2), end_time=now - timedelta(days=2))
        session.add_all([stale, fresh, finished])
        await session.commit()
        kept_ids = {fresh.id, finished.id}

    result = await reconcile_stale_attempts({"session_factory": session_factory}, max_age_minutes=60)

    assert result["removed"] == 1
    async with session_factory() as session:
        remaining = {a.id for a in (await session.execute(select(QuizAttempt))).scalars().all()}
    assert remaining == kept_ids


async def test_sweep_with_nothing_to_do(session_factory):
    result = await reconcile_stale_attempts({"session_factory": session_factory})

    assert result["removed"] == 0
