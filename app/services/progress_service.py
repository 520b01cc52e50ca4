"""
Progress Service

Derives analytics from finished tests.

ProgressAggregator.on_test_completed(test_id) is called explicitly when a
test ends (inline or from the ARQ worker). It rebuilds the test's own
statistics and topic performance rows, then recomputes the user's topic
mastery and overall progress from all completed tests, so running it
twice for the same test changes nothing.

ProgressService.get_progress(user_id) reads those aggregates back and
adds a readiness assessment.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.progress import TestStatistics, TopicPerformance, UserProgress
from app.models.test_session import TestSession, TestStatus
from app.repositories.progress_repo import (
    TestStatisticsRepository,
    TopicPerformanceRepository,
    UserProgressRepository,
    UserTopicMasteryRepository,
)
from app.repositories.session_repo import TestSessionRepository
from app.schemas.progress import ProgressResponse, ReadinessResponse, TopicMasteryResponse
from app.sources import QuestionSource, translate_store_errors

logger = logging.getLogger(__name__)

READINESS_WINDOW_DAYS = 30
STREAK_TARGET_DAYS = 30
WEAK_AREA_THRESHOLD = 70.0
STRONG_AREA_THRESHOLD = 80.0


class ProgressServiceError(Exception):
    pass


class TestNotCompletedError(ProgressServiceError):
    pass


# ============================================================
# Pure helpers
# ============================================================

def mastery_level(attempted: int, correct: int) -> str:
    if attempted <= 0:
        return "not_started"
    accuracy = correct / attempted * 100
    if accuracy < 50:
        return "learning"
    if accuracy < 70:
        return "improving"
    if accuracy < 85:
        return "proficient"
    return "mastered"


def advance_streak(
    current: int,
    longest: int,
    last_study_date: Optional[date],
    activity_date: date,
) -> Tuple[int, int, date]:
    """
    Returns (current, longest, last_study_date) after activity on a day.

    Consecutive days extend the streak, a gap resets it to 1, and more
    activity on the same day (or an older day) leaves it alone.
    """
    if last_study_date is None or activity_date - last_study_date > timedelta(days=1):
        current = 1
    elif activity_date - last_study_date == timedelta(days=1):
        current += 1
    else:
        activity_date = max(activity_date, last_study_date)
        current = max(current, 1)
    return current, max(longest, current), activity_date


def readiness_level(recent_average: float, mastered_ratio: float, consistency: float) -> str:
    if recent_average >= 80 and mastered_ratio >= 0.8 and consistency >= 80:
        return "High Readiness"
    if recent_average >= 70 and mastered_ratio >= 0.6 and consistency >= 60:
        return "Moderate Readiness"
    return "Additional Preparation Needed"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# ============================================================
# Aggregator
# ============================================================

class ProgressAggregator:
    """Writes the derived progress tables for a finished test."""

    def __init__(self, db: AsyncSession, source: QuestionSource):
        self.db = db
        self.source = source
        self.test_repo = TestSessionRepository(db)
        self.stats_repo = TestStatisticsRepository(db)
        self.topic_perf_repo = TopicPerformanceRepository(db)
        self.mastery_repo = UserTopicMasteryRepository(db)
        self.progress_repo = UserProgressRepository(db)

    async def on_test_completed(self, test_id: UUID) -> TestStatistics:
        """
        Raises:
            DataSourceUnavailable: If the database drops mid-aggregation
        """
        with translate_store_errors("progress store"):
            return await self._aggregate(test_id)

    async def _aggregate(self, test_id: UUID) -> TestStatistics:
        test = await self.test_repo.get_with_results(test_id)
        if not test:
            raise ProgressServiceError(f"Test {test_id} not found")
        if test.status != TestStatus.COMPLETED:
            raise TestNotCompletedError(f"Test {test_id} is not completed")

        stats = await self._write_statistics(test)
        topic_ids = await self._write_topic_performance(test)
        await self.db.flush()

        await self._update_mastery(test.user_id, topic_ids)
        await self._update_user_progress(test)

        await self.db.commit()
        logger.info(
            f"Aggregated test {test_id}: score {stats.overall_score:.1f}, "
            f"{len(topic_ids)} topics"
        )
        return stats

    # ------------------------------------------------------------
    # Per-test rows
    # ------------------------------------------------------------

    async def _write_statistics(self, test: TestSession) -> TestStatistics:
        entries = test.results
        answered = [e for e in entries if not e.is_skipped and e.selected_answers is not None]
        total = test.total_questions or len(test.question_ids or [])

        stats = await self.stats_repo.get_by_test(test.id)
        if stats is None:
            stats = TestStatistics(test_id=test.id)
            self.db.add(stats)

        stats.total_questions = total
        stats.correct_answers = sum(1 for e in answered if e.is_correct)
        stats.partially_correct = sum(1 for e in answered if e.is_partially_correct)
        stats.incorrect_answers = sum(1 for e in answered if not e.is_correct)
        stats.skipped_questions = sum(1 for e in entries if e.is_skipped)
        stats.marked_questions = sum(1 for e in entries if e.is_marked)
        stats.average_time_per_question = (
            sum(e.time_spent_seconds or 0 for e in entries) / len(entries) if entries else 0.0
        )
        # Unanswered questions count as zero
        stats.overall_score = (
            sum(float(e.score or 0) for e in entries) / total if total else 0.0
        )
        return stats

    async def _write_topic_performance(self, test: TestSession) -> List[int]:
        await self.topic_perf_repo.delete_by_test(test.id)

        questions = {q.id: q for q in await self.source.get_questions(test.question_ids or [])}
        entries = {e.question_id: e for e in test.results}

        buckets: Dict[Tuple[int, int], Dict[str, int]] = defaultdict(
            lambda: {"total": 0, "correct": 0, "incorrect": 0, "ngn": 0}
        )
        for question_id in test.question_ids or []:
            question = questions.get(question_id)
            if question is None:
                logger.warning(f"Question {question_id} of test {test.id} no longer exists")
                continue
            bucket = buckets[(question.topic_id, question.sub_topic_id)]
            bucket["total"] += 1
            bucket["ngn"] += 1 if question.ngn else 0

            entry = entries.get(question_id)
            if entry is None or entry.is_skipped or entry.selected_answers is None:
                continue
            if entry.is_correct:
                bucket["correct"] += 1
            else:
                bucket["incorrect"] += 1

        for (topic_id, subtopic_id), bucket in buckets.items():
            self.db.add(
                TopicPerformance(
                    test_id=test.id,
                    topic_id=topic_id,
                    subtopic_id=subtopic_id,
                    total_questions=bucket["total"],
                    correct_answers=bucket["correct"],
                    incorrect_answers=bucket["incorrect"],
                    ngn_questions=bucket["ngn"],
                    score_percentage=bucket["correct"] / bucket["total"] * 100,
                )
            )
        return sorted({topic_id for topic_id, _ in buckets})

    # ------------------------------------------------------------
    # Per-user rows
    # ------------------------------------------------------------

    async def _update_mastery(self, user_id: UUID, topic_ids: List[int]) -> None:
        totals = await self.topic_perf_repo.totals_by_topic(user_id, topic_ids)
        for topic_id in topic_ids:
            attempted, correct = totals.get(topic_id, (0, 0))
            mastery = await self.mastery_repo.get_or_create(user_id, topic_id)
            mastery.questions_attempted = attempted
            mastery.questions_correct = correct
            mastery.mastery_level = mastery_level(attempted, correct)

    async def _update_user_progress(self, test: TestSession) -> UserProgress:
        progress = await self.progress_repo.get_or_create(test.user_id)
        totals = await self.stats_repo.totals_for_user(test.user_id)

        progress.total_tests_taken = totals["tests"]
        progress.total_questions_completed = totals["questions"]
        progress.total_study_time_minutes = totals["seconds"] // 60
        progress.average_score = totals["average"]

        activity = _as_utc(test.end_time or datetime.now(timezone.utc)).date()
        (
            progress.current_streak_days,
            progress.longest_streak_days,
            progress.last_study_date,
        ) = advance_streak(
            progress.current_streak_days,
            progress.longest_streak_days,
            progress.last_study_date,
            activity,
        )
        return progress


# ============================================================
# Read side
# ============================================================

class ProgressService:
    """Service for reading a user's progress and readiness."""

    def __init__(self, db: AsyncSession, source: QuestionSource):
        self.db = db
        self.source = source
        self.stats_repo = TestStatisticsRepository(db)
        self.topic_perf_repo = TopicPerformanceRepository(db)
        self.mastery_repo = UserTopicMasteryRepository(db)
        self.progress_repo = UserProgressRepository(db)

    async def get_progress(self, user_id: UUID) -> ProgressResponse:
        progress = await self.progress_repo.get_by_user(user_id)
        mastery_rows = await self.mastery_repo.get_for_user(user_id)
        topics = await self.source.list_topics()
        topic_names = {t.id: t.name for t in topics}

        mastery = [
            TopicMasteryResponse(
                topic_id=m.topic_id,
                topic_name=topic_names.get(m.topic_id),
                questions_attempted=m.questions_attempted,
                questions_correct=m.questions_correct,
                mastery_level=m.mastery_level,
            )
            for m in mastery_rows
        ]

        readiness = await self._readiness(
            user_id,
            streak=progress.current_streak_days if progress else 0,
            mastered=sum(1 for m in mastery_rows if m.mastery_level == "mastered"),
            total_topics=len(topics),
        )

        if progress is None:
            return ProgressResponse(mastery=mastery, readiness=readiness)

        return ProgressResponse(
            total_tests_taken=progress.total_tests_taken,
            total_questions_completed=progress.total_questions_completed,
            total_study_time_minutes=progress.total_study_time_minutes,
            average_score=progress.average_score,
            current_streak_days=progress.current_streak_days,
            longest_streak_days=progress.longest_streak_days,
            last_study_date=progress.last_study_date,
            mastery=mastery,
            readiness=readiness,
        )

    async def _readiness(
        self,
        user_id: UUID,
        streak: int,
        mastered: int,
        total_topics: int,
    ) -> ReadinessResponse:
        since = datetime.now(timezone.utc) - timedelta(days=READINESS_WINDOW_DAYS)
        recent_average = await self.stats_repo.recent_average(user_id, since)
        mastered_ratio = mastered / total_topics if total_topics else 0.0
        consistency = min(streak / STREAK_TARGET_DAYS, 1.0) * 100

        score = recent_average * 0.4 + mastered_ratio * 100 * 0.3 + consistency * 0.3

        by_topic = await self.topic_perf_repo.average_by_topic(user_id)
        return ReadinessResponse(
            readiness_score=round(score, 2),
            readiness_level=readiness_level(recent_average, mastered_ratio, consistency),
            recent_average=round(recent_average, 2),
            mastered_topic_ratio=round(mastered_ratio, 4),
            study_consistency=round(consistency, 2),
            weak_areas=sorted(t for t, avg in by_topic if avg < WEAK_AREA_THRESHOLD),
            strong_areas=sorted(t for t, avg in by_topic if avg >= STRONG_AREA_THRESHOLD),
        )
