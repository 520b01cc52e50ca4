"""
Progress Repository

Data access layer for the derived progress tables.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.progress import (
    TestStatistics,
    TopicPerformance,
    UserProgress,
    UserTopicMastery,
)
from app.models.test_session import TestSession, TestStatus


class TestStatisticsRepository(BaseRepository[TestStatistics]):

    def __init__(self, db: AsyncSession):
        super().__init__(TestStatistics, db)

    async def get_by_test(self, test_id: UUID) -> Optional[TestStatistics]:
        result = await self.db.execute(
            select(self.model).where(self.model.test_id == test_id)
        )
        return result.scalar_one_or_none()

    async def totals_for_user(self, user_id: UUID) -> dict:
        """Counts and averages over the user's completed tests."""
        stmt = (
            select(
                func.count(self.model.id),
                func.coalesce(func.sum(self.model.correct_answers + self.model.incorrect_answers), 0),
                func.coalesce(func.sum(TestSession.total_time_seconds), 0),
                func.coalesce(func.avg(self.model.overall_score), 0.0),
            )
            .join(TestSession, TestSession.id == self.model.test_id)
            .where(
                TestSession.user_id == user_id,
                TestSession.status == TestStatus.COMPLETED,
            )
        )
        tests, questions, seconds, average = (await self.db.execute(stmt)).one()
        return {
            "tests": int(tests or 0),
            "questions": int(questions or 0),
            "seconds": int(seconds or 0),
            "average": float(average or 0.0),
        }

    async def recent_average(self, user_id: UUID, since: datetime) -> float:
        """Mean overall score of the user's tests completed since ``since``."""
        stmt = (
            select(func.avg(self.model.overall_score))
            .join(TestSession, TestSession.id == self.model.test_id)
            .where(
                TestSession.user_id == user_id,
                TestSession.status == TestStatus.COMPLETED,
                TestSession.end_time >= since,
            )
        )
        result = await self.db.execute(stmt)
        return float(result.scalar() or 0.0)


class TopicPerformanceRepository(BaseRepository[TopicPerformance]):

    def __init__(self, db: AsyncSession):
        super().__init__(TopicPerformance, db)

    async def get_by_test(self, test_id: UUID) -> List[TopicPerformance]:
        result = await self.db.execute(
            select(self.model).where(self.model.test_id == test_id)
        )
        return list(result.scalars().all())

    async def delete_by_test(self, test_id: UUID) -> None:
        await self.db.execute(delete(self.model).where(self.model.test_id == test_id))

    async def totals_by_topic(self, user_id: UUID, topic_ids: List[int]) -> dict:
        """topic_id -> (attempted, correct) across the user's completed tests."""
        if not topic_ids:
            return {}
        stmt = (
            select(
                self.model.topic_id,
                func.sum(self.model.correct_answers + self.model.incorrect_answers),
                func.sum(self.model.correct_answers),
            )
            .join(TestSession, TestSession.id == self.model.test_id)
            .where(
                TestSession.user_id == user_id,
                TestSession.status == TestStatus.COMPLETED,
                self.model.topic_id.in_(topic_ids),
            )
            .group_by(self.model.topic_id)
        )
        result = await self.db.execute(stmt)
        return {
            topic_id: (int(attempted or 0), int(correct or 0))
            for topic_id, attempted, correct in result.all()
        }

    async def average_by_topic(self, user_id: UUID) -> List[tuple]:
        """(topic_id, mean score_percentage) across the user's completed tests."""
        stmt = (
            select(self.model.topic_id, func.avg(self.model.score_percentage))
            .join(TestSession, TestSession.id == self.model.test_id)
            .where(
                TestSession.user_id == user_id,
                TestSession.status == TestStatus.COMPLETED,
            )
            .group_by(self.model.topic_id)
        )
        result = await self.db.execute(stmt)
        return [(topic_id, float(avg or 0.0)) for topic_id, avg in result.all()]


class UserTopicMasteryRepository(BaseRepository[UserTopicMastery]):

    def __init__(self, db: AsyncSession):
        super().__init__(UserTopicMastery, db)

    async def get_for_user(self, user_id: UUID) -> List[UserTopicMastery]:
        result = await self.db.execute(
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.topic_id)
        )
        return list(result.scalars().all())

    async def get_or_create(self, user_id: UUID, topic_id: int) -> UserTopicMastery:
        result = await self.db.execute(
            select(self.model).where(
                self.model.user_id == user_id,
                self.model.topic_id == topic_id,
            )
        )
        mastery = result.scalar_one_or_none()
        if mastery:
            return mastery
        mastery = UserTopicMastery(
            user_id=user_id,
            topic_id=topic_id,
            questions_attempted=0,
            questions_correct=0,
            mastery_level="not_started",
        )
        self.db.add(mastery)
        await self.db.flush()
        return mastery


class UserProgressRepository(BaseRepository[UserProgress]):

    def __init__(self, db: AsyncSession):
        super().__init__(UserProgress, db)

    async def get_by_user(self, user_id: UUID) -> Optional[UserProgress]:
        result = await self.db.execute(
            select(self.model).where(self.model.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: UUID) -> UserProgress:
        progress = await self.get_by_user(user_id)
        if progress:
            return progress
        progress = UserProgress(
            user_id=user_id,
            total_tests_taken=0,
            total_questions_completed=0,
            total_study_time_minutes=0,
            average_score=0.0,
            current_streak_days=0,
            longest_streak_days=0,
        )
        self.db.add(progress)
        await self.db.flush()
        return progress
