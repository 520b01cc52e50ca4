"""
Test Repository

Data access layer for TestSession and TestResultEntry models.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.repositories.base import BaseRepository
from app.models.test_result import TestResultEntry
from app.models.test_session import TestSession


class TestSessionRepository(BaseRepository[TestSession]):
    """Repository for TestSession model."""

    def __init__(self, db: AsyncSession):
        super().__init__(TestSession, db)

    async def get_for_user(self, test_id: UUID, user_id: UUID) -> Optional[TestSession]:
        stmt = (
            select(self.model)
            .where(self.model.id == test_id, self.model.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_results(self, test_id: UUID) -> Optional[TestSession]:
        stmt = (
            select(self.model)
            .options(selectinload(self.model.results))
            .where(self.model.id == test_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 20
    ) -> List[TestSession]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.start_time.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: UUID) -> int:
        stmt = (
            select(func.count(self.model.id))
            .where(self.model.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0


class TestResultRepository(BaseRepository[TestResultEntry]):
    """Repository for TestResultEntry model."""

    def __init__(self, db: AsyncSession):
        super().__init__(TestResultEntry, db)

    async def get_by_test(self, test_id: UUID) -> List[TestResultEntry]:
        stmt = (
            select(self.model)
            .where(self.model.test_id == test_id)
            .order_by(self.model.question_order)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def upsert_entry(
        self,
        test_id: UUID,
        question_id: int,
        question_order: int,
        **fields,
    ) -> None:
        """
        Write a result entry, updating only ``fields`` if one already exists.
        """
        table = self.model.__table__
        now = datetime.now(timezone.utc)

        stmt = self.insert_stmt().values(
            id=uuid.uuid4(),
            test_id=test_id,
            question_id=question_id,
            question_order=question_order,
            created_at=now,
            updated_at=now,
            **fields,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.test_id, table.c.question_id],
            set_={**{key: stmt.excluded[key] for key in fields}, "updated_at": now},
        )
        await self.db.execute(stmt)
