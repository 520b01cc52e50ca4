"""
Usage Tracker

Per-user question status: which questions a user has answered, how,
and which remain unused. Reads and writes go to the question_status
table; a missing row means "unused".
"""

import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.question_status import QuestionStatus
from app.repositories.question_status_repo import QuestionStatusRepository
from app.sources import QuestionFilter, QuestionSource, translate_store_errors

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    QuestionStatus.UNUSED: "Unused",
    QuestionStatus.CORRECT: "Correct",
    QuestionStatus.INCORRECT: "Incorrect",
    QuestionStatus.MARKED: "Marked",
    QuestionStatus.SKIPPED: "Skipped",
}


class UsageTracker:
    """Service for per-user question status."""

    def __init__(self, db: AsyncSession, source: QuestionSource):
        self.db = db
        self.source = source
        self.status_repo = QuestionStatusRepository(db)

    # ============================================================
    # READ
    # ============================================================

    async def get_status(self, user_id: UUID, question_id: int) -> QuestionStatus:
        with translate_store_errors("usage store"):
            row = await self.status_repo.get(user_id, question_id)
        return QuestionStatus(row.status) if row else QuestionStatus.UNUSED

    async def get_statuses(
        self,
        user_id: UUID,
        question_ids: Optional[Iterable[int]] = None,
    ) -> Dict[int, QuestionStatus]:
        """
        Status per question id. When ids are given, every id is present in
        the result (unused when the user has no record).
        """
        ids = list(question_ids) if question_ids is not None else None
        with translate_store_errors("usage store"):
            raw = await self.status_repo.get_status_map(user_id, ids)

        statuses = {qid: QuestionStatus(status) for qid, status in raw.items()}
        if ids is not None:
            for qid in ids:
                statuses.setdefault(qid, QuestionStatus.UNUSED)
        return statuses

    async def get_unused_count(self, user_id: UUID, question_filter: QuestionFilter) -> int:
        """Matching questions the user has no record for, or left unused."""
        rows = await self.source.list_classifications()
        statuses = await self.get_statuses(user_id)
        return sum(
            1
            for row in rows
            if question_filter.matches(row)
            and statuses.get(row.question_id, QuestionStatus.UNUSED) == QuestionStatus.UNUSED
        )

    async def get_status_counts(self, user_id: UUID, include_ngn: bool = True) -> List[dict]:
        """Counts per status for the filter panel, in display order."""
        rows = await self.source.list_classifications()
        statuses = await self.get_statuses(user_id)

        counts = {status: 0 for status in QuestionStatus}
        for row in rows:
            if row.ngn and not include_ngn:
                continue
            counts[statuses.get(row.question_id, QuestionStatus.UNUSED)] += 1

        return [
            {"id": status.value, "label": STATUS_LABELS[status], "count": counts[status]}
            for status in QuestionStatus
        ]

    # ============================================================
    # WRITE
    # ============================================================

    async def record_outcome(
        self,
        user_id: UUID,
        question_id: int,
        outcome: QuestionStatus,
        is_correct: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> None:
        """
        Upsert the user's status for a question.

        The caller owns the transaction and commits.
        """
        outcome = QuestionStatus(outcome)
        with translate_store_errors("usage store"):
            await self.status_repo.upsert(
                user_id=user_id,
                question_id=question_id,
                status=outcome.value,
                is_correct=is_correct,
                notes=notes,
            )
        logger.debug(f"Recorded {outcome.value} for user {user_id} question {question_id}")
