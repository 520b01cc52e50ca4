"""
Test Session Schemas

Pydantic models for test creation, answering and review.

Public question payloads never carry option correctness; that is only
sent back in an AnswerReveal after the user has answered.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings


# ============================================================
# Enums
# ============================================================

class TypeFilter(str, Enum):
    UNUSED = "unused"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    MARKED = "marked"
    SKIPPED = "skipped"


class TestTypeSchema(str, Enum):
    PRACTICE = "practice"
    QUICK_START = "quick_start"
    CUSTOM = "custom"


# ============================================================
# Request Schemas
# ============================================================

class TestCreateRequest(BaseModel):
    """Criteria for a custom test."""
    selected_type_filters: List[TypeFilter] = Field(
        default_factory=list,
        description="Question statuses to draw from (unused, correct, ...)"
    )
    selected_topic_ids: List[int] = Field(default_factory=list)
    selected_subtopic_ids: List[int] = Field(default_factory=list)
    question_count: int = Field(
        default=25,
        ge=0,
        description="Requested number of questions"
    )
    ngn_enabled: bool = True
    ngn_only: bool = False
    tutor_mode: bool = False
    timer_enabled: bool = False
    minutes_per_question: Optional[int] = Field(None, ge=1, le=10)


class QuickStartRequest(BaseModel):
    """A Quick Start draws only from the user's unused questions."""
    question_count: int = Field(
        default=25,
        ge=1,
        description="Requested number of questions"
    )
    include_ngn: bool = True
    tutor_mode: bool = False
    timer_enabled: bool = False
    minutes_per_question: Optional[int] = Field(None, ge=1, le=10)

    @field_validator("question_count")
    def validate_question_count(cls, v):
        limit = settings.QUICK_START_MAX_QUESTIONS
        if v > limit:
            raise ValueError(f"Quick Start is limited to {limit} questions")
        return v


class AnswerSubmitRequest(BaseModel):
    selected_indices: List[int] = Field(
        default_factory=list,
        description="Zero-based indices of the chosen options"
    )
    time_spent_seconds: int = Field(0, ge=0)


class MarkRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


# ============================================================
# Question Payloads
# ============================================================

class PublicOption(BaseModel):
    index: int
    text: str


class PublicQuestion(BaseModel):
    """A question as shown while the test is running."""
    id: int
    question_text: str
    question_type: str
    difficulty: str
    ngn: bool
    topic: str
    sub_topic: str
    topic_id: int
    sub_topic_id: int
    options: List[PublicOption]


class RevealedOption(PublicOption):
    is_correct: bool


class AnswerReveal(BaseModel):
    """Answer key for one question."""
    question_id: int
    options: List[RevealedOption]
    correct_indices: List[int]
    explanation: str
    references: List[str]


class ScoreResultResponse(BaseModel):
    correct: int
    total: int
    incorrect: int
    is_fully_correct: bool
    is_multiple_choice: bool
    nclex_score: int
    percentage: float
    partial_score: float

    class Config:
        from_attributes = True


class AnswerResultResponse(BaseModel):
    question_id: int
    score: ScoreResultResponse
    reveal: Optional[AnswerReveal] = None


# ============================================================
# Test Responses
# ============================================================

class TestResponse(BaseModel):
    """Test session metadata."""
    id: UUID
    test_type: str
    status: str
    settings: Dict[str, Any]
    total_questions: int
    time_limit_minutes: Optional[int] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    total_time_seconds: Optional[int] = None

    class Config:
        from_attributes = True


class TestDetailResponse(TestResponse):
    """Test with its questions, in presentation order."""
    questions: List[PublicQuestion]
    answered_question_ids: List[int] = Field(default_factory=list)


class TestCreateResponse(BaseModel):
    question_count: int
    message: Optional[str] = None
    test: Optional[TestDetailResponse] = None


class AvailableCountResponse(BaseModel):
    available: int


class TestListResponse(BaseModel):
    tests: List[TestResponse]
    total: int


class ReviewItem(BaseModel):
    question: PublicQuestion
    reveal: AnswerReveal
    selected_indices: Optional[List[int]] = None
    is_correct: bool = False
    is_partially_correct: bool = False
    is_skipped: bool = False
    is_marked: bool = False
    time_spent_seconds: int = 0
    score: float = 0.0


class TestStatisticsResponse(BaseModel):
    total_questions: int
    correct_answers: int
    partially_correct: int
    incorrect_answers: int
    skipped_questions: int
    marked_questions: int
    average_time_per_question: float
    overall_score: float

    class Config:
        from_attributes = True


class TestReviewResponse(BaseModel):
    test: TestResponse
    statistics: Optional[TestStatisticsResponse] = None
    items: List[ReviewItem]
