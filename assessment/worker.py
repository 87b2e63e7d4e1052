"""
ARQ Worker Configuration

Runs maintenance jobs outside the request path. Today that is the
reconciliation sweep for attempts stranded in_progress by a crash.

Running the Worker:
------------------
    # From project root directory
    arq assessment.worker.WorkerSettings

    # With verbose logging
    arq assessment.worker.WorkerSettings --verbose
"""

import logging
from typing import Any, Dict

from arq import cron

from assessment.core.config import settings
from assessment.db.database import engine
from assessment.db.redis import get_arq_redis_settings
from assessment.tasks.attempt_tasks import reconcile_stale_attempts

# ============================================================
# Logging Configuration
# ============================================================

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================
# Startup and Shutdown Hooks
# ============================================================

async def startup(ctx: Dict[str, Any]) -> None:
    logger.info("ARQ Worker starting up...")
    logger.info(
        f"Stale attempt threshold: {settings.STALE_ATTEMPT_MINUTES} minutes"
    )


async def shutdown(ctx: Dict[str, Any]) -> None:
    logger.info("ARQ Worker shutting down...")
    await engine.dispose()
    logger.info("ARQ Worker shutdown complete")


# ============================================================
# Worker Configuration Class
# ============================================================

class WorkerSettings:
    """
    ARQ Worker settings.

    This class is discovered by ARQ when you run:
        arq assessment.worker.WorkerSettings
    """

    # Also enqueueable on demand: enqueue_job('reconcile_stale_attempts')
    functions = [
        reconcile_stale_attempts,
    ]

    cron_jobs = [
        # Every 10 minutes
        cron(
            reconcile_stale_attempts,
            minute=set(range(0, 60, 10)),
            run_at_startup=True,
            unique=True,
        ),
    ]

    redis_settings = get_arq_redis_settings()

    on_startup = startup
    on_shutdown = shutdown

    job_timeout = 300
    keep_result = 3600
    max_tries = 3

    max_jobs = 2
    poll_delay = 0.5

    queue_name = "arq:queue"
    health_check_interval = 10
