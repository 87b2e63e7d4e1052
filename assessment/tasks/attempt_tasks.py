"""
Attempt Maintenance Tasks

Background tasks that keep the attempts table consistent.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assessment.core.config import settings
from assessment.db.database import AsyncSessionLocal
from assessment.repositories.attempt_repo import QuizAttemptRepository

logger = logging.getLogger(__name__)


# ============================================================
# RECONCILIATION SWEEP
# ============================================================

async def reconcile_stale_attempts(
    ctx: Dict[str, Any],
    max_age_minutes: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Delete attempts stranded in_progress.

    The grading engine keeps its in_progress row uncommitted until the
    attempt completes, so a live submission is never visible here. What
    this finds was committed by some other writer (a manual fix, an older
    deployment, a crashed import) and never received graded answers, so
    deleting it loses no results.

    Args:
        ctx: ARQ context; ctx['session_factory'] overrides the default
        max_age_minutes: Age threshold, defaults to STALE_ATTEMPT_MINUTES

    Returns:
        Dict with the number of attempts removed and the cutoff used
    """
    job_id = ctx.get('job_id', 'unknown')
    age = max_age_minutes or settings.STALE_ATTEMPT_MINUTES
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=age)

    session_factory: async_sessionmaker[AsyncSession] = ctx.get(
        'session_factory', AsyncSessionLocal
    )

    async with session_factory() as session:
        try:
            removed = await QuizAttemptRepository(session).delete_stale_in_progress(cutoff)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception(f"Reconciliation sweep failed (job: {job_id})")
            raise

    if removed:
        logger.warning(
            f"Removed {removed} stranded in_progress attempts "
            f"started before {cutoff.isoformat()}"
        )
    else:
        logger.info("Reconciliation sweep: no stranded attempts")

    return {"removed": removed, "cutoff": cutoff.isoformat()}
