"""
Tests for progress aggregation, streaks, mastery and readiness.
"""
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from arq import Retry
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.models.progress import TopicPerformance
from app.repositories.progress_repo import (
    TestStatisticsRepository,
    TopicPerformanceRepository,
    UserProgressRepository,
    UserTopicMasteryRepository,
)
from app.schemas.session import TestCreateRequest, TypeFilter
from app.services.progress_service import (
    ProgressAggregator,
    ProgressService,
    TestNotCompletedError,
    advance_streak,
    mastery_level,
)
from app.services.session_service import TestService
from app.sources import DataSourceUnavailable
from app.tasks.progress_tasks import aggregate_test_progress


class TestMasteryLevel:

    @pytest.mark.parametrize(
        "attempted,correct,level",
        [
            (0, 0, "not_started"),
            (10, 4, "learning"),
            (10, 5, "improving"),
            (10, 7, "proficient"),
            (20, 17, "mastered"),
        ],
    )
    def test_thresholds(self, attempted, correct, level):
        assert mastery_level(attempted, correct) == level


class TestAdvanceStreak:

    def test_first_activity(self):
        assert advance_streak(0, 0, None, date(2026, 3, 1)) == (1, 1, date(2026, 3, 1))

    def test_consecutive_day_extends(self):
        assert advance_streak(3, 5, date(2026, 3, 1), date(2026, 3, 2)) == (4, 5, date(2026, 3, 2))

    def test_same_day_does_not_extend(self):
        assert advance_streak(4, 4, date(2026, 3, 2), date(2026, 3, 2)) == (4, 4, date(2026, 3, 2))

    def test_gap_resets(self):
        assert advance_streak(6, 6, date(2026, 3, 2), date(2026, 3, 5)) == (1, 6, date(2026, 3, 5))

    def test_longest_follows_current(self):
        assert advance_streak(7, 7, date(2026, 3, 9), date(2026, 3, 10)) == (8, 8, date(2026, 3, 10))


@pytest.fixture
def test_service(db_session, source):
    return TestService(db_session, source)


@pytest.fixture
async def finished_test(test_service, test_user):
    """
    Topic 1 (questions 1-4): one correct, one wrong, one partially
    correct, one skipped.
    """
    created = await test_service.create_test(
        test_user.id,
        TestCreateRequest(
            selected_type_filters=[TypeFilter.UNUSED],
            selected_topic_ids=[1],
            question_count=4,
        ),
    )
    test_id = created.test.id

    await test_service.record_answer(test_user.id, test_id, 1, [1], time_spent_seconds=30)
    await test_service.record_answer(test_user.id, test_id, 2, [1], time_spent_seconds=50)
    await test_service.record_answer(test_user.id, test_id, 3, [0, 1], time_spent_seconds=40)
    await test_service.skip_question(test_user.id, test_id, 4)
    await test_service.end_test(test_user.id, test_id)
    return test_id


class TestProgressAggregator:

    async def test_statistics(self, db_session, finished_test):
        stats = await TestStatisticsRepository(db_session).get_by_test(finished_test)
        assert stats.total_questions == 4
        assert stats.correct_answers == 1
        assert stats.incorrect_answers == 2
        assert stats.partially_correct == 1
        assert stats.skipped_questions == 1
        assert stats.overall_score == pytest.approx(41.75)

    async def test_topic_performance_and_mastery(self, db_session, test_user, finished_test):
        rows = await TopicPerformanceRepository(db_session).get_by_test(finished_test)
        assert len(rows) == 1
        assert (rows[0].topic_id, rows[0].subtopic_id) == (1, 11)
        assert (rows[0].total_questions, rows[0].correct_answers, rows[0].incorrect_answers) == (4, 1, 2)
        assert rows[0].score_percentage == pytest.approx(25.0)

        mastery = await UserTopicMasteryRepository(db_session).get_for_user(test_user.id)
        assert [(m.topic_id, m.questions_attempted, m.questions_correct, m.mastery_level) for m in mastery] == [
            (1, 3, 1, "learning")
        ]

    async def test_user_progress(self, db_session, test_user, finished_test):
        progress = await UserProgressRepository(db_session).get_by_user(test_user.id)
        assert progress.total_tests_taken == 1
        assert progress.total_questions_completed == 3
        assert progress.average_score == pytest.approx(41.75)
        assert progress.current_streak_days == 1
        assert progress.longest_streak_days == 1

    async def test_running_twice_changes_nothing(self, db_session, source, test_user, finished_test):
        await ProgressAggregator(db_session, source).on_test_completed(finished_test)

        rows = await TopicPerformanceRepository(db_session).get_by_test(finished_test)
        assert len(rows) == 1
        assert isinstance(rows[0], TopicPerformance)

        mastery = await UserTopicMasteryRepository(db_session).get_for_user(test_user.id)
        assert mastery[0].questions_attempted == 3

        progress = await UserProgressRepository(db_session).get_by_user(test_user.id)
        assert progress.total_tests_taken == 1
        assert progress.current_streak_days == 1

    async def test_in_progress_test_rejected(self, db_session, source, test_service, test_user):
        created = await test_service.create_test(
            test_user.id,
            TestCreateRequest(selected_type_filters=[TypeFilter.UNUSED], selected_topic_ids=[2]),
        )
        with pytest.raises(TestNotCompletedError):
            await ProgressAggregator(db_session, source).on_test_completed(created.test.id)


class TestProgressService:

    async def test_new_user(self, db_session, source, test_user):
        progress = await ProgressService(db_session, source).get_progress(test_user.id)
        assert progress.total_tests_taken == 0
        assert progress.mastery == []
        assert progress.readiness.readiness_score == 0.0
        assert progress.readiness.readiness_level == "Additional Preparation Needed"

    async def test_after_a_test(self, db_session, source, test_user, finished_test):
        progress = await ProgressService(db_session, source).get_progress(test_user.id)
        assert progress.total_tests_taken == 1
        assert progress.mastery[0].topic_name == "Pharmacological and Parenteral Therapies"
        assert progress.readiness.recent_average == pytest.approx(41.75)
        assert progress.readiness.weak_areas == [1]
        assert progress.readiness.strong_areas == []
        expected = 41.75 * 0.4 + (1 / 30) * 100 * 0.3
        assert progress.readiness.readiness_score == pytest.approx(expected, abs=0.01)


class TestQueuedAggregation:

    @pytest.fixture
    def queue_mode(self):
        original = settings.PROGRESS_AGGREGATION_MODE
        settings.PROGRESS_AGGREGATION_MODE = "queue"
        yield
        settings.PROGRESS_AGGREGATION_MODE = original

    async def _start(self, test_service, test_user):
        created = await test_service.create_test(
            test_user.id,
            TestCreateRequest(selected_type_filters=[TypeFilter.UNUSED], selected_topic_ids=[6]),
        )
        await test_service.record_answer(test_user.id, created.test.id, 15, [1])
        return created.test.id

    async def test_end_test_enqueues_job(self, queue_mode, db_session, test_service, test_user):
        test_id = await self._start(test_service, test_user)
        pool = AsyncMock()

        with patch("app.services.session_service.get_arq_pool", AsyncMock(return_value=pool)):
            await test_service.end_test(test_user.id, test_id)

        pool.enqueue_job.assert_awaited_once_with("aggregate_test_progress", str(test_id))
        assert await TestStatisticsRepository(db_session).get_by_test(test_id) is None

    async def test_falls_back_to_inline(self, queue_mode, db_session, test_service, test_user):
        test_id = await self._start(test_service, test_user)

        with patch(
            "app.services.session_service.get_arq_pool",
            AsyncMock(side_effect=ConnectionError("redis down")),
        ):
            await test_service.end_test(test_user.id, test_id)

        stats = await TestStatisticsRepository(db_session).get_by_test(test_id)
        assert stats.overall_score == pytest.approx(100.0)

    async def test_worker_task(self, queue_mode, session_factory, db_session, source, test_service, test_user):
        test_id = await self._start(test_service, test_user)
        pool = AsyncMock()
        with patch("app.services.session_service.get_arq_pool", AsyncMock(return_value=pool)):
            await test_service.end_test(test_user.id, test_id)

        with patch(
            "app.tasks.progress_tasks.get_worker_db_session",
            AsyncMock(return_value=session_factory()),
        ), patch("app.tasks.progress_tasks.get_question_source", return_value=source):
            result = await aggregate_test_progress({"job_id": "job-1", "job_try": 1}, str(test_id))

        assert result["success"] is True
        assert result["overall_score"] == pytest.approx(100.0)

    async def test_worker_task_invalid_id(self):
        result = await aggregate_test_progress({}, "not-a-uuid")
        assert result == {"success": False, "error": "Invalid test ID"}

    async def test_worker_task_retries_when_store_unavailable(self, session_factory, source):
        failing = AsyncMock(side_effect=DataSourceUnavailable("question store unavailable"))
        with patch(
            "app.tasks.progress_tasks.get_worker_db_session",
            AsyncMock(return_value=session_factory()),
        ), patch("app.tasks.progress_tasks.get_question_source", return_value=source), patch(
            "app.tasks.progress_tasks.ProgressAggregator.on_test_completed", failing
        ):
            with pytest.raises(Retry):
                await aggregate_test_progress(
                    {"job_try": 2}, "5f0c6a8e-2b1d-4c3e-9a7f-0d1e2f3a4b5c"
                )

    async def test_worker_task_retries_when_database_drops(self, session_factory, source):
        dropped = AsyncMock(side_effect=OperationalError("SELECT 1", {}, ConnectionRefusedError("db down")))
        with patch(
            "app.tasks.progress_tasks.get_worker_db_session",
            AsyncMock(return_value=session_factory()),
        ), patch("app.tasks.progress_tasks.get_question_source", return_value=source), patch(
            "app.tasks.progress_tasks.ProgressAggregator.on_test_completed", dropped
        ):
            with pytest.raises(Retry):
                await aggregate_test_progress(
                    {"job_try": 1}, "5f0c6a8e-2b1d-4c3e-9a7f-0d1e2f3a4b5c"
                )


class TestAggregatorStoreErrors:

    async def test_database_drop_is_unavailable(self, db_session, source, finished_test):
        aggregator = ProgressAggregator(db_session, source)
        dropped = AsyncMock(side_effect=OperationalError("SELECT 1", {}, ConnectionRefusedError("db down")))
        with patch.object(aggregator.test_repo, "get_with_results", dropped):
            with pytest.raises(DataSourceUnavailable):
                await aggregator.on_test_completed(finished_test)
