"""
Question Status Repository

Per-user question outcomes. Writes go through a single-statement upsert
keyed by (user_id, question_id) so concurrent submissions cannot create
duplicate rows.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.base import BaseRepository
from app.models.question_status import UserQuestionStatus


class QuestionStatusRepository(BaseRepository[UserQuestionStatus]):
    """Repository for UserQuestionStatus model."""

    def __init__(self, db: AsyncSession):
        super().__init__(UserQuestionStatus, db)

    async def get(self, user_id: UUID, question_id: int) -> Optional[UserQuestionStatus]:
        stmt = (
            select(self.model)
            .where(
                self.model.user_id == user_id,
                self.model.question_id == question_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_status_map(
        self,
        user_id: UUID,
        question_ids: Optional[Iterable[int]] = None,
    ) -> Dict[int, str]:
        """question_id -> status for every row the user has."""
        stmt = select(self.model.question_id, self.model.status).where(
            self.model.user_id == user_id
        )
        if question_ids is not None:
            stmt = stmt.where(self.model.question_id.in_(list(question_ids)))
        result = await self.db.execute(stmt)
        return {question_id: status for question_id, status in result.all()}

    async def upsert(
        self,
        user_id: UUID,
        question_id: int,
        status: str,
        is_correct: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> None:
        """
        Insert or update the user's status for a question.

        attempts_count moves only when an answer was graded (is_correct is
        not None); correct_count only when it was correct. Notes are kept
        unless new ones are given.
        """
        table = self.model.__table__
        graded = is_correct is not None
        now = datetime.now(timezone.utc)

        stmt = self.insert_stmt().values(
            id=uuid.uuid4(),
            user_id=user_id,
            question_id=question_id,
            status=status,
            attempts_count=1 if graded else 0,
            correct_count=1 if is_correct else 0,
            last_attempt_at=now if graded else None,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.question_id],
            set_={
                "status": stmt.excluded.status,
                "attempts_count": table.c.attempts_count + (1 if graded else 0),
                "correct_count": table.c.correct_count + (1 if is_correct else 0),
                "last_attempt_at": now if graded else table.c.last_attempt_at,
                "notes": func.coalesce(stmt.excluded.notes, table.c.notes),
                "updated_at": now,
            },
        )
        await self.db.execute(stmt)
