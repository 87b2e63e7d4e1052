"""
Background Tasks Module

Task functions run by the ARQ worker (see assessment/worker.py).

Task functions receive a special `ctx` parameter:
- ctx['redis']: Redis connection for the worker
- ctx['job_id']: Unique ID of this job
- ctx['job_try']: Which retry attempt this is (1, 2, 3...)

Running Workers:
---------------
    arq assessment.worker.WorkerSettings
"""

from assessment.tasks.attempt_tasks import reconcile_stale_attempts

__all__ = [
    "reconcile_stale_attempts",
]
