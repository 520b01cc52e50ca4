"""
Tests for per-user question status tracking.
"""
import uuid

from app.models.question_status import QuestionStatus
from app.repositories.question_status_repo import QuestionStatusRepository
from app.sources import QuestionFilter


class TestRecordOutcome:
    """Upsert semantics of the question_status table."""

    async def test_missing_row_is_unused(self, tracker, test_user):
        assert await tracker.get_status(test_user.id, 1) == QuestionStatus.UNUSED

    async def test_two_graded_answers_count_two_attempts(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 1, QuestionStatus.INCORRECT, is_correct=False)
        await tracker.record_outcome(test_user.id, 1, QuestionStatus.CORRECT, is_correct=True)
        await db_session.commit()

        row = await QuestionStatusRepository(db_session).get(test_user.id, 1)
        assert row.status == QuestionStatus.CORRECT.value
        assert row.attempts_count == 2
        assert row.correct_count == 1
        assert row.last_attempt_at is not None

    async def test_two_correct_answers_count_twice(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 6, QuestionStatus.CORRECT, is_correct=True)
        await tracker.record_outcome(test_user.id, 6, QuestionStatus.CORRECT, is_correct=True)
        await db_session.commit()

        row = await QuestionStatusRepository(db_session).get(test_user.id, 6)
        assert row.attempts_count == 2
        assert row.correct_count == 2

    async def test_marking_does_not_count_an_attempt(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 2, QuestionStatus.CORRECT, is_correct=True)
        await tracker.record_outcome(test_user.id, 2, QuestionStatus.MARKED, notes="review")
        await db_session.commit()

        row = await QuestionStatusRepository(db_session).get(test_user.id, 2)
        assert row.status == QuestionStatus.MARKED.value
        assert row.attempts_count == 1
        assert row.notes == "review"

    async def test_notes_kept_when_not_given(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 3, QuestionStatus.MARKED, notes="check dosage")
        await tracker.record_outcome(test_user.id, 3, QuestionStatus.INCORRECT, is_correct=False)
        await db_session.commit()

        row = await QuestionStatusRepository(db_session).get(test_user.id, 3)
        assert row.notes == "check dosage"
        assert row.status == QuestionStatus.INCORRECT.value

    async def test_one_row_per_user_and_question(self, tracker, db_session, test_user):
        for _ in range(3):
            await tracker.record_outcome(test_user.id, 4, QuestionStatus.SKIPPED)
        await db_session.commit()

        statuses = await tracker.get_statuses(test_user.id)
        assert statuses == {4: QuestionStatus.SKIPPED}

    async def test_rows_are_per_user(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 5, QuestionStatus.CORRECT, is_correct=True)
        await db_session.commit()

        assert await tracker.get_status(uuid.uuid4(), 5) == QuestionStatus.UNUSED


class TestCounts:

    async def test_get_statuses_fills_unused(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 1, QuestionStatus.CORRECT, is_correct=True)
        await db_session.commit()

        statuses = await tracker.get_statuses(test_user.id, [1, 2, 3])
        assert statuses == {
            1: QuestionStatus.CORRECT,
            2: QuestionStatus.UNUSED,
            3: QuestionStatus.UNUSED,
        }

    async def test_unused_count_for_new_user(self, tracker, test_user):
        assert await tracker.get_unused_count(test_user.id, QuestionFilter()) == 19
        assert await tracker.get_unused_count(test_user.id, QuestionFilter(ngn_enabled=False)) == 13

    async def test_unused_count_drops_after_answer(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 1, QuestionStatus.INCORRECT, is_correct=False)
        await tracker.record_outcome(test_user.id, 8, QuestionStatus.SKIPPED)
        await db_session.commit()

        assert await tracker.get_unused_count(test_user.id, QuestionFilter()) == 17
        assert await tracker.get_unused_count(
            test_user.id, QuestionFilter(topic_ids=frozenset({1}))
        ) == 3

    async def test_status_counts(self, tracker, db_session, test_user):
        await tracker.record_outcome(test_user.id, 1, QuestionStatus.CORRECT, is_correct=True)
        await tracker.record_outcome(test_user.id, 8, QuestionStatus.MARKED)
        await db_session.commit()

        counts = {c["id"]: c["count"] for c in await tracker.get_status_counts(test_user.id)}
        assert counts == {"unused": 17, "correct": 1, "incorrect": 0, "marked": 1, "skipped": 0}

        standard = {
            c["id"]: c["count"]
            for c in await tracker.get_status_counts(test_user.id, include_ngn=False)
        }
        assert standard["marked"] == 0
        assert standard["unused"] == 12
