"""
ARQ Worker Configuration

Runs progress aggregation jobs queued when PROGRESS_AGGREGATION_MODE=queue.

Running the Worker:
------------------
    # From project root directory
    arq app.worker.WorkerSettings

    # With verbose logging
    arq app.worker.WorkerSettings --verbose

Multiple workers can pull from the same Redis queue.
"""

import logging
from typing import Any, Dict

from app.core.config import settings
from app.db.database import check_db_connection
from app.db.redis import get_arq_redis_settings
from app.tasks.progress_tasks import aggregate_test_progress

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
    """
    Called when worker starts. Verifies the database is reachable so
    misconfiguration shows up before the first job.
    """
    logger.info("ARQ Worker starting up...")

    if await check_db_connection():
        logger.info("Database connection established")
    else:
        logger.warning("Database unreachable; jobs will fail until it is back")

    logger.info(f"Question source: {settings.QUESTION_SOURCE}")
    logger.info("ARQ Worker ready to process jobs")


async def shutdown(ctx: Dict[str, Any]) -> None:
    logger.info("ARQ Worker shutdown complete")


# ============================================================
# Worker Configuration Class
# ============================================================

class WorkerSettings:
    """
    ARQ Worker settings.

    This class is discovered by ARQ when you run:
        arq app.worker.WorkerSettings
    """

    # ========================================
    # Task Functions
    # ========================================
    functions = [
        aggregate_test_progress,
    ]

    # ========================================
    # Redis Connection
    # ========================================
    redis_settings = get_arq_redis_settings()

    # ========================================
    # Lifecycle Hooks
    # ========================================
    on_startup = startup
    on_shutdown = shutdown

    # ========================================
    # Job Settings
    # ========================================
    job_timeout = 120
    keep_result = 3600
    max_tries = 3
    retry_delay = 30

    # ========================================
    # Concurrency Settings
    # ========================================
    max_jobs = 10
    poll_delay = 0.5

    # ========================================
    # Queue Settings
    # ========================================
    queue_name = "arq:queue"
    health_check_interval = 10
