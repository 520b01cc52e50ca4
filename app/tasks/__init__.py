"""
Background Tasks Module

Task definitions for ARQ workers.

- progress_tasks.py: progress aggregation after a test ends

Task functions receive a special `ctx` parameter:
- ctx['redis']: Redis connection for the worker
- ctx['job_id']: Unique ID of this job
- ctx['job_try']: Which retry attempt this is (1, 2, 3...)

Running Workers:
---------------
    arq app.worker.WorkerSettings
"""

from app.tasks.progress_tasks import aggregate_test_progress

__all__ = [
    "aggregate_test_progress",
]
