"""
Progress Endpoints

- GET /progress - Totals, streaks, topic mastery and readiness
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_source
from app.db.database import get_db
from app.models.user import User
from app.schemas.progress import ProgressResponse
from app.services.progress_service import ProgressService
from app.sources import DataSourceUnavailable, QuestionSource

router = APIRouter(prefix="/progress", tags=["Progress"])


def get_progress_service(
    db: AsyncSession = Depends(get_db),
    source: QuestionSource = Depends(get_source),
) -> ProgressService:
    return ProgressService(db, source)


@router.get("", response_model=ProgressResponse, summary="Get the user's progress")
async def get_progress(
    current_user: User = Depends(get_current_active_user),
    service: ProgressService = Depends(get_progress_service),
):
    try:
        return await service.get_progress(current_user.id)
    except DataSourceUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Question data source unavailable",
        )
