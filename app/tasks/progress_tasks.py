"""
Progress Aggregation Tasks

Background rebuild of the progress tables after a test ends.
"""

import logging
from typing import Any, Dict
from uuid import UUID

from arq import Retry
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import AsyncSessionLocal
from app.services.progress_service import ProgressAggregator, ProgressServiceError
from app.sources import DataSourceUnavailable, get_question_source, translate_store_errors

logger = logging.getLogger(__name__)


# ============================================================
# DATABASE SESSION HELPER
# ============================================================

async def get_worker_db_session() -> AsyncSession:
    """Create a database session for worker use."""
    return AsyncSessionLocal()


# ============================================================
# PROGRESS AGGREGATION TASK
# ============================================================

async def aggregate_test_progress(
    ctx: Dict[str, Any],
    test_id: str
) -> Dict[str, Any]:
    """
    Rebuild statistics, topic performance, mastery and user progress
    for a completed test.

    Args:
        ctx: ARQ context (job_id, job_try, redis)
        test_id: UUID of the completed test

    Returns:
        Dict with the aggregation result
    """
    job_id = ctx.get("job_id", "unknown")
    job_try = ctx.get("job_try", 1)

    logger.info(f"Aggregating progress for test {test_id} (job: {job_id}, attempt: {job_try})")

    try:
        test_uuid = UUID(test_id)
    except ValueError:
        logger.error(f"Invalid test ID: {test_id}")
        return {"success": False, "error": "Invalid test ID"}

    session = await get_worker_db_session()
    try:
        with translate_store_errors("progress store"):
            aggregator = ProgressAggregator(session, get_question_source(session))
            stats = await aggregator.on_test_completed(test_uuid)
        return {
            "success": True,
            "test_id": test_id,
            "overall_score": stats.overall_score,
        }
    except ProgressServiceError as e:
        logger.error(f"Aggregation skipped for test {test_id}: {e}")
        return {"success": False, "error": str(e)}
    except DataSourceUnavailable as e:
        await session.rollback()
        logger.warning(f"Store unavailable for test {test_id}, retrying: {e}")
        raise Retry(defer=job_try * 10) from e
    finally:
        await session.close()
