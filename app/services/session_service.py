"""
Test Session Service

Business logic for the test lifecycle:
- Creating custom and Quick Start tests from assembled questions
- Recording answers, marks and skips
- Ending or abandoning a test and triggering progress aggregation
- Reviewing a completed test with its answer keys
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.scoring import AnswerKeyEntry, ScoreResult, score
from app.db.redis import get_arq_pool
from app.models.question_status import QuestionStatus
from app.models.test_session import TestSession, TestStatus, TestType
from app.repositories.progress_repo import TestStatisticsRepository
from app.repositories.session_repo import TestResultRepository, TestSessionRepository
from app.schemas.session import (
    AnswerResultResponse,
    AnswerReveal,
    PublicOption,
    PublicQuestion,
    QuickStartRequest,
    RevealedOption,
    ReviewItem,
    ScoreResultResponse,
    TestCreateRequest,
    TestCreateResponse,
    TestDetailResponse,
    TestResponse,
    TestReviewResponse,
    TestStatisticsResponse,
    TypeFilter,
)
from app.services.progress_service import ProgressAggregator
from app.services.test_assembler import QuestionWithChoices, TestAssembler, TestCriteria
from app.services.usage_service import UsageTracker
from app.sources import QuestionRecord, QuestionSource

logger = logging.getLogger(__name__)

EMPTY_POOL_MESSAGE = "No questions available for the selected filters"


class TestServiceError(Exception):
    pass


class TestNotFoundError(TestServiceError):
    pass


class QuestionNotInTestError(TestServiceError):
    pass


class TestStateError(TestServiceError):
    """The test is not in a state that allows the operation."""


# ============================================================
# Payload builders
# ============================================================

def to_public_question(record: QuestionRecord) -> PublicQuestion:
    return PublicQuestion(
        id=record.id,
        question_text=record.question_text,
        question_type=record.question_type,
        difficulty=record.difficulty,
        ngn=record.ngn,
        topic=record.topic,
        sub_topic=record.sub_topic,
        topic_id=record.topic_id,
        sub_topic_id=record.sub_topic_id,
        options=[PublicOption(index=i, text=o.text) for i, o in enumerate(record.options)],
    )


def to_reveal(record: QuestionRecord) -> AnswerReveal:
    return AnswerReveal(
        question_id=record.id,
        options=[
            RevealedOption(index=i, text=o.text, is_correct=o.is_correct)
            for i, o in enumerate(record.options)
        ],
        correct_indices=[i for i, o in enumerate(record.options) if o.is_correct],
        explanation=record.explanation,
        references=record.references,
    )


def to_score_response(result: ScoreResult) -> ScoreResultResponse:
    return ScoreResultResponse(
        correct=result.correct,
        total=result.total,
        incorrect=result.incorrect,
        is_fully_correct=result.is_fully_correct,
        is_multiple_choice=result.is_multiple_choice,
        nclex_score=result.nclex_score,
        percentage=result.percentage,
        partial_score=result.partial_score,
    )


def to_test_response(test: TestSession) -> TestResponse:
    test_settings = dict(test.settings or {})
    time_limit = None
    if test_settings.get("timer_enabled"):
        per_question = test_settings.get("minutes_per_question") or settings.DEFAULT_MINUTES_PER_QUESTION
        time_limit = per_question * test.total_questions

    return TestResponse(
        id=test.id,
        test_type=test.test_type.value,
        status=test.status.value,
        settings=test_settings,
        total_questions=test.total_questions,
        time_limit_minutes=time_limit,
        start_time=test.start_time,
        end_time=test.end_time,
        total_time_seconds=test.total_time_seconds,
    )


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TestService:
    """Service for creating, taking and reviewing tests."""

    def __init__(self, db: AsyncSession, source: QuestionSource):
        self.db = db
        self.source = source
        self.tracker = UsageTracker(db, source)
        self.assembler = TestAssembler(source, self.tracker)
        self.test_repo = TestSessionRepository(db)
        self.result_repo = TestResultRepository(db)
        self.stats_repo = TestStatisticsRepository(db)

    # ============================================================
    # CREATE TEST
    # ============================================================

    @staticmethod
    def criteria_from_request(request: TestCreateRequest) -> TestCriteria:
        return TestCriteria(
            selected_type_filters=frozenset(f.value for f in request.selected_type_filters),
            selected_topic_ids=frozenset(request.selected_topic_ids),
            selected_subtopic_ids=frozenset(request.selected_subtopic_ids),
            question_count=request.question_count,
            ngn_enabled=request.ngn_enabled,
            ngn_only=request.ngn_only,
        )

    async def available_count(self, user_id: UUID, request: TestCreateRequest) -> int:
        return await self.assembler.available_count(user_id, self.criteria_from_request(request))

    async def create_test(self, user_id: UUID, request: TestCreateRequest) -> TestCreateResponse:
        questions = await self.assembler.build_test(user_id, self.criteria_from_request(request))
        if not questions:
            return TestCreateResponse(question_count=0, message=EMPTY_POOL_MESSAGE)

        all_filters = set(request.selected_type_filters) == set(TypeFilter)
        test_type = TestType.PRACTICE if all_filters else TestType.CUSTOM

        test = await self._persist(
            user_id,
            test_type,
            questions,
            {
                "tutor_mode": request.tutor_mode,
                "timer_enabled": request.timer_enabled,
                "minutes_per_question": request.minutes_per_question,
                "ngn_enabled": request.ngn_enabled,
                "ngn_only": request.ngn_only,
                "question_count": request.question_count,
                "selected_type_filters": sorted(f.value for f in request.selected_type_filters),
                "selected_topic_ids": sorted(request.selected_topic_ids),
                "selected_subtopic_ids": sorted(request.selected_subtopic_ids),
            },
        )
        return TestCreateResponse(
            question_count=len(questions),
            test=self._detail(test, [q.record for q in questions], []),
        )

    async def create_quick_start(self, user_id: UUID, request: QuickStartRequest) -> TestCreateResponse:
        questions = await self.assembler.build_quick_start(
            user_id,
            request.question_count,
            include_ngn=request.include_ngn,
        )
        if not questions:
            return TestCreateResponse(question_count=0, message=EMPTY_POOL_MESSAGE)

        test = await self._persist(
            user_id,
            TestType.QUICK_START,
            questions,
            {
                "tutor_mode": request.tutor_mode,
                "timer_enabled": request.timer_enabled,
                "minutes_per_question": request.minutes_per_question,
                "ngn_enabled": request.include_ngn,
                "ngn_only": False,
                "question_count": request.question_count,
                "selected_type_filters": [QuestionStatus.UNUSED.value],
            },
        )
        return TestCreateResponse(
            question_count=len(questions),
            test=self._detail(test, [q.record for q in questions], []),
        )

    async def _persist(
        self,
        user_id: UUID,
        test_type: TestType,
        questions: List[QuestionWithChoices],
        test_settings: dict,
    ) -> TestSession:
        test = await self.test_repo.create(
            user_id=user_id,
            test_type=test_type,
            settings=test_settings,
            question_ids=[q.id for q in questions],
            total_questions=len(questions),
            start_time=datetime.now(timezone.utc),
            status=TestStatus.IN_PROGRESS,
        )
        logger.info(f"Created {test_type.value} test {test.id} with {len(questions)} questions")
        return test

    # ============================================================
    # READ
    # ============================================================

    async def list_tests(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[TestResponse], int]:
        tests = await self.test_repo.list_for_user(user_id, skip, limit)
        total = await self.test_repo.count_for_user(user_id)
        return [to_test_response(t) for t in tests], total

    async def get_test(self, user_id: UUID, test_id: UUID) -> TestDetailResponse:
        test = await self._get_owned(user_id, test_id)
        records = await self._ordered_records(test)
        entries = await self.result_repo.get_by_test(test.id)
        answered = [e.question_id for e in entries if e.selected_answers is not None]
        return self._detail(test, records, answered)

    def _detail(
        self,
        test: TestSession,
        records: List[QuestionRecord],
        answered: List[int],
    ) -> TestDetailResponse:
        return TestDetailResponse(
            **to_test_response(test).model_dump(),
            questions=[to_public_question(r) for r in records],
            answered_question_ids=answered,
        )

    async def _get_owned(self, user_id: UUID, test_id: UUID) -> TestSession:
        test = await self.test_repo.get_for_user(test_id, user_id)
        if not test:
            raise TestNotFoundError("Test not found")
        return test

    async def _ordered_records(self, test: TestSession) -> List[QuestionRecord]:
        ids = list(test.question_ids or [])
        by_id = {r.id: r for r in await self.source.get_questions(ids)}
        return [by_id[i] for i in ids if i in by_id]

    async def _question_in_test(
        self,
        user_id: UUID,
        test_id: UUID,
        question_id: int,
    ) -> Tuple[TestSession, int]:
        test = await self._get_owned(user_id, test_id)
        if test.status != TestStatus.IN_PROGRESS:
            raise TestStateError(f"Test is {test.status.value}")
        ids = list(test.question_ids or [])
        if question_id not in ids:
            raise QuestionNotInTestError("Question is not part of this test")
        return test, ids.index(question_id)

    # ============================================================
    # RECORD ANSWER
    # ============================================================

    async def record_answer(
        self,
        user_id: UUID,
        test_id: UUID,
        question_id: int,
        selected_indices: List[int],
        time_spent_seconds: int = 0,
    ) -> AnswerResultResponse:
        """
        Grade a submission, update the user's question status and the
        test's result entry in one transaction.

        Raises:
            InvalidSelection: If an index is outside the question's options
        """
        test, order = await self._question_in_test(user_id, test_id, question_id)

        records = await self.source.get_questions([question_id])
        if not records:
            raise QuestionNotInTestError("Question no longer exists")
        record = records[0]

        result = score(
            selected_indices,
            [
                AnswerKeyEntry(o.is_correct, o.partial_credit, o.penalty_value)
                for o in record.options
            ],
            use_partial_scoring=record.use_partial_scoring,
        )

        outcome = QuestionStatus.CORRECT if result.is_fully_correct else QuestionStatus.INCORRECT
        await self.tracker.record_outcome(
            user_id,
            question_id,
            outcome,
            is_correct=result.is_fully_correct,
        )
        await self.result_repo.upsert_entry(
            test.id,
            question_id,
            order,
            selected_answers=sorted(set(selected_indices)),
            is_correct=result.is_fully_correct,
            is_partially_correct=result.is_partially_correct,
            is_skipped=False,
            time_spent_seconds=time_spent_seconds,
            score=round(result.partial_score * 100, 2),
        )
        await self.db.commit()

        return AnswerResultResponse(
            question_id=question_id,
            score=to_score_response(result),
            reveal=to_reveal(record) if test.tutor_mode else None,
        )

    # ============================================================
    # MARK / SKIP
    # ============================================================

    async def mark_question(
        self,
        user_id: UUID,
        test_id: UUID,
        question_id: int,
        notes: Optional[str] = None,
    ) -> None:
        test, order = await self._question_in_test(user_id, test_id, question_id)
        await self.tracker.record_outcome(user_id, question_id, QuestionStatus.MARKED, notes=notes)
        await self.result_repo.upsert_entry(test.id, question_id, order, is_marked=True)
        await self.db.commit()

    async def skip_question(self, user_id: UUID, test_id: UUID, question_id: int) -> None:
        test, order = await self._question_in_test(user_id, test_id, question_id)
        await self.tracker.record_outcome(user_id, question_id, QuestionStatus.SKIPPED)
        await self.result_repo.upsert_entry(
            test.id,
            question_id,
            order,
            selected_answers=None,
            is_correct=False,
            is_partially_correct=False,
            is_skipped=True,
            score=0,
        )
        await self.db.commit()

    # ============================================================
    # END / ABANDON
    # ============================================================

    async def end_test(self, user_id: UUID, test_id: UUID) -> TestResponse:
        test = await self._get_owned(user_id, test_id)
        if test.status != TestStatus.IN_PROGRESS:
            raise TestStateError(f"Test is {test.status.value}")

        now = datetime.now(timezone.utc)
        test.status = TestStatus.COMPLETED
        test.end_time = now
        test.total_time_seconds = int((now - _as_utc(test.start_time)).total_seconds())
        await self.db.commit()
        await self.db.refresh(test)

        await self._aggregate(test.id)
        return to_test_response(test)

    async def abandon_test(self, user_id: UUID, test_id: UUID) -> TestResponse:
        test = await self._get_owned(user_id, test_id)
        if test.status != TestStatus.IN_PROGRESS:
            raise TestStateError(f"Test is {test.status.value}")

        test.status = TestStatus.ABANDONED
        test.end_time = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(test)
        logger.info(f"Test {test.id} abandoned")
        return to_test_response(test)

    async def _aggregate(self, test_id: UUID) -> None:
        if settings.PROGRESS_AGGREGATION_MODE == "queue":
            try:
                pool = await get_arq_pool()
                await pool.enqueue_job("aggregate_test_progress", str(test_id))
                logger.info(f"Queued progress aggregation for test {test_id}")
                return
            except Exception as e:
                logger.error(f"Failed to queue aggregation for test {test_id}, running inline: {e}")

        await ProgressAggregator(self.db, self.source).on_test_completed(test_id)

    # ============================================================
    # REVIEW
    # ============================================================

    async def get_review(self, user_id: UUID, test_id: UUID) -> TestReviewResponse:
        test = await self._get_owned(user_id, test_id)
        if test.status != TestStatus.COMPLETED:
            raise TestStateError("Answers are available once the test is completed")

        records = await self._ordered_records(test)
        entries = {e.question_id: e for e in await self.result_repo.get_by_test(test.id)}
        stats = await self.stats_repo.get_by_test(test.id)

        items = []
        for record in records:
            entry = entries.get(record.id)
            items.append(
                ReviewItem(
                    question=to_public_question(record),
                    reveal=to_reveal(record),
                    selected_indices=entry.selected_answers if entry else None,
                    is_correct=bool(entry and entry.is_correct),
                    is_partially_correct=bool(entry and entry.is_partially_correct),
                    is_skipped=bool(entry and entry.is_skipped),
                    is_marked=bool(entry and entry.is_marked),
                    time_spent_seconds=entry.time_spent_seconds if entry else 0,
                    score=float(entry.score) if entry else 0.0,
                )
            )

        return TestReviewResponse(
            test=to_test_response(test),
            statistics=TestStatisticsResponse.model_validate(stats) if stats else None,
            items=items,
        )
