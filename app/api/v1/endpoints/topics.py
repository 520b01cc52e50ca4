"""
Topic Endpoints

- GET /topics/breakdown - Question counts per topic and subtopic
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_current_active_user, get_source
from app.models.user import User
from app.schemas.topic import TopicBreakdownResponse
from app.services.topic_service import TopicService
from app.sources import DataSourceUnavailable, QuestionSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/topics", tags=["Topics"])


def get_topic_service(source: QuestionSource = Depends(get_source)) -> TopicService:
    return TopicService(source)


@router.get(
    "/breakdown",
    response_model=TopicBreakdownResponse,
    summary="Question counts per topic",
    description="""
    Returns every topic with its subtopics and question counts, once for
    all questions and once for standard (non-NGN) questions, plus NGN totals.
    """,
)
async def get_topic_breakdown(
    current_user: User = Depends(get_current_active_user),
    service: TopicService = Depends(get_topic_service),
):
    try:
        return await service.get_topic_breakdown()
    except DataSourceUnavailable as e:
        logger.error(f"Topic breakdown failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Question data source unavailable",
        )
