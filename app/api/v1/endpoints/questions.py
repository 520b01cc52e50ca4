"""
Question Endpoints

- GET /questions/unused-count   - Number of questions the user has not used
- GET /questions/status-counts  - Question counts per status (filter panel)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_source
from app.db.database import get_db
from app.models.user import User
from app.schemas.topic import StatusCount, StatusCountsResponse, UnusedCountResponse
from app.services.usage_service import UsageTracker
from app.sources import DataSourceUnavailable, QuestionFilter, QuestionSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["Questions"])


def get_usage_tracker(
    db: AsyncSession = Depends(get_db),
    source: QuestionSource = Depends(get_source),
) -> UsageTracker:
    return UsageTracker(db, source)


@router.get(
    "/unused-count",
    response_model=UnusedCountResponse,
    summary="Count unused questions",
)
async def get_unused_count(
    include_ngn: bool = Query(True),
    current_user: User = Depends(get_current_active_user),
    tracker: UsageTracker = Depends(get_usage_tracker),
):
    try:
        count = await tracker.get_unused_count(
            current_user.id,
            QuestionFilter(ngn_enabled=include_ngn),
        )
    except DataSourceUnavailable as e:
        logger.error(f"Unused count failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Question data source unavailable",
        )
    return UnusedCountResponse(include_ngn=include_ngn, unused_count=count)


@router.get(
    "/status-counts",
    response_model=StatusCountsResponse,
    summary="Count questions per status",
)
async def get_status_counts(
    include_ngn: bool = Query(True),
    current_user: User = Depends(get_current_active_user),
    tracker: UsageTracker = Depends(get_usage_tracker),
):
    try:
        counts = await tracker.get_status_counts(current_user.id, include_ngn)
    except DataSourceUnavailable as e:
        logger.error(f"Status counts failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Question data source unavailable",
        )
    return StatusCountsResponse(
        include_ngn=include_ngn,
        counts=[StatusCount(**c) for c in counts],
    )
