"""
Test Endpoints

HTTP API for building, taking and reviewing tests.

Endpoints:
----------
- POST   /tests                                   - Build a custom test
- POST   /tests/quick-start                       - Build a Quick Start test
- POST   /tests/available-count                   - Candidate pool size for criteria
- GET    /tests                                   - List the user's tests
- GET    /tests/{test_id}                         - Get a test (for taking)
- POST   /tests/{test_id}/questions/{qid}/answer  - Submit an answer
- POST   /tests/{test_id}/questions/{qid}/mark    - Mark a question for review
- POST   /tests/{test_id}/questions/{qid}/skip    - Skip a question
- POST   /tests/{test_id}/end                     - Finish the test
- POST   /tests/{test_id}/abandon                 - Abandon the test
- GET    /tests/{test_id}/review                  - Review a completed test
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_active_user, get_source
from app.core.scoring import InvalidSelection
from app.models.user import User
from app.schemas.session import (
    AnswerResultResponse,
    AnswerSubmitRequest,
    AvailableCountResponse,
    MarkRequest,
    QuickStartRequest,
    TestCreateRequest,
    TestCreateResponse,
    TestDetailResponse,
    TestListResponse,
    TestResponse,
    TestReviewResponse,
)
from app.services.session_service import (
    QuestionNotInTestError,
    TestNotFoundError,
    TestService,
    TestServiceError,
    TestStateError,
)
from app.services.test_assembler import InvalidSelectionCriteria
from app.sources import DataSourceUnavailable, QuestionSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tests", tags=["Tests"])


def get_test_service(
    db: AsyncSession = Depends(get_db),
    source: QuestionSource = Depends(get_source),
) -> TestService:
    return TestService(db, source)


def _http_error(e: Exception) -> HTTPException:
    """Map service errors to HTTP errors."""
    if isinstance(e, DataSourceUnavailable):
        logger.error(f"Data source unavailable: {e}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Question data source unavailable",
        )
    if isinstance(e, (InvalidSelectionCriteria, InvalidSelection)):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    if isinstance(e, TestNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
    if isinstance(e, QuestionNotInTestError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, TestStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.error(f"Test operation failed: {e}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


SERVICE_ERRORS = (
    DataSourceUnavailable,
    InvalidSelectionCriteria,
    InvalidSelection,
    TestServiceError,
)


# ============================================================
# BUILD TEST
# ============================================================

@router.post(
    "",
    response_model=TestCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Build a custom test",
    description="""
    Selects questions matching the type filters (unused, correct, ...),
    topics, subtopics and NGN settings, then samples the requested count.

    An empty selection is not an error: the response has question_count 0
    and no test is created.
    """,
)
async def create_test(
    request: TestCreateRequest,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.create_test(current_user.id, request)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.post(
    "/quick-start",
    response_model=TestCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Build a Quick Start test from unused questions",
)
async def create_quick_start(
    request: QuickStartRequest,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.create_quick_start(current_user.id, request)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.post(
    "/available-count",
    response_model=AvailableCountResponse,
    summary="Count questions available for the given criteria",
)
async def available_count(
    request: TestCreateRequest,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return AvailableCountResponse(
            available=await service.available_count(current_user.id, request)
        )
    except SERVICE_ERRORS as e:
        raise _http_error(e)


# ============================================================
# LIST / GET
# ============================================================

@router.get("", response_model=TestListResponse, summary="List the user's tests")
async def list_tests(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    tests, total = await service.list_tests(current_user.id, skip, limit)
    return TestListResponse(tests=tests, total=total)


@router.get(
    "/{test_id}",
    response_model=TestDetailResponse,
    summary="Get test with questions",
    description="Returns the test with its questions in order, without answer keys.",
)
async def get_test(
    test_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.get_test(current_user.id, test_id)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


# ============================================================
# ANSWER / MARK / SKIP
# ============================================================

@router.post(
    "/{test_id}/questions/{question_id}/answer",
    response_model=AnswerResultResponse,
    summary="Submit an answer",
    description="""
    Grades the selected options (all-or-nothing) and records the outcome.
    In tutor mode the response also carries the answer key and explanation.
    """,
)
async def record_answer(
    test_id: UUID,
    question_id: int,
    request: AnswerSubmitRequest,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.record_answer(
            user_id=current_user.id,
            test_id=test_id,
            question_id=question_id,
            selected_indices=request.selected_indices,
            time_spent_seconds=request.time_spent_seconds,
        )
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.post(
    "/{test_id}/questions/{question_id}/mark",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark a question for review",
)
async def mark_question(
    test_id: UUID,
    question_id: int,
    request: MarkRequest | None = None,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        await service.mark_question(
            current_user.id,
            test_id,
            question_id,
            notes=request.notes if request else None,
        )
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.post(
    "/{test_id}/questions/{question_id}/skip",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Skip a question",
)
async def skip_question(
    test_id: UUID,
    question_id: int,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        await service.skip_question(current_user.id, test_id, question_id)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


# ============================================================
# END / ABANDON / REVIEW
# ============================================================

@router.post("/{test_id}/end", response_model=TestResponse, summary="Finish a test")
async def end_test(
    test_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.end_test(current_user.id, test_id)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.post("/{test_id}/abandon", response_model=TestResponse, summary="Abandon a test")
async def abandon_test(
    test_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.abandon_test(current_user.id, test_id)
    except SERVICE_ERRORS as e:
        raise _http_error(e)


@router.get(
    "/{test_id}/review",
    response_model=TestReviewResponse,
    summary="Review a completed test",
)
async def review_test(
    test_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: TestService = Depends(get_test_service),
):
    try:
        return await service.get_review(current_user.id, test_id)
    except SERVICE_ERRORS as e:
        raise _http_error(e)
