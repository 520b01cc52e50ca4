"""
Tests for the question sources and the source factory.
"""
import pytest
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from app.core.config import settings
from app.services.question_loader import load_questions
from app.sources import (
    DatabaseQuestionSource,
    DataSourceUnavailable,
    QuestionFilter,
    SampleQuestionSource,
    get_question_source,
    normalize_references,
    reset_question_source,
    translate_store_errors,
)


@pytest.fixture
def restore_source_setting():
    original = settings.QUESTION_SOURCE
    yield
    settings.QUESTION_SOURCE = original
    reset_question_source()


class TestSourceFactory:

    def test_database_source(self, db_session, restore_source_setting):
        settings.QUESTION_SOURCE = "database"
        assert isinstance(get_question_source(db_session), DatabaseQuestionSource)

    def test_sample_source_is_cached(self, db_session, restore_source_setting):
        settings.QUESTION_SOURCE = "sample"
        reset_question_source()
        first = get_question_source(db_session)
        assert isinstance(first, SampleQuestionSource)
        assert get_question_source(db_session) is first

    def test_unknown_source(self, db_session, restore_source_setting):
        settings.QUESTION_SOURCE = "mock"
        with pytest.raises(ValueError):
            get_question_source(db_session)


class TestSampleSource:

    async def test_missing_file_is_unavailable(self, tmp_path):
        with pytest.raises(DataSourceUnavailable):
            SampleQuestionSource(tmp_path / "missing.json")

    async def test_malformed_file_is_unavailable(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"topics": []}')
        with pytest.raises(DataSourceUnavailable):
            SampleQuestionSource(path)

    async def test_filters(self, source):
        assert len(await source.list_questions(QuestionFilter())) == 19
        ngn = await source.list_questions(QuestionFilter(ngn_only=True))
        assert sorted(q.id for q in ngn) == [8, 10, 11, 12, 14, 19]
        both = await source.list_questions(
            QuestionFilter(topic_ids=frozenset({4}), subtopic_ids=frozenset({41}))
        )
        assert [q.id for q in both] == [11]

    async def test_unknown_ids_omitted(self, source):
        records = await source.get_questions([1, 999])
        assert [r.id for r in records] == [1]

    async def test_references_normalized(self, source):
        q2, q4 = await source.get_questions([2, 4])
        assert len(q2.references) == 2
        assert q4.references == []


class TestDatabaseSource:
    """The database source serves the same data once the sample set is loaded."""

    async def test_matches_sample_source(self, db_session, session_factory, sample_data, source):
        assert await load_questions(db_session, sample_data) == 19

        async with session_factory() as session:
            db_source = DatabaseQuestionSource(session)

            records = await db_source.list_questions(QuestionFilter(ngn_enabled=False))
            assert len(records) == 13

            db_q3 = (await db_source.get_questions([3]))[0]
            sample_q3 = (await source.get_questions([3]))[0]
            assert db_q3.options == sample_q3.options
            assert db_q3.references == sample_q3.references
            assert db_q3.topic == sample_q3.topic

            topics = await db_source.list_topics()
            assert [t.id for t in topics] == list(range(1, 9))
            assert len(await db_source.list_classifications()) == 19

    async def test_loading_twice_adds_nothing(self, db_session, sample_data):
        await load_questions(db_session, sample_data)
        assert await load_questions(db_session, sample_data) == 0


class TestNormalizeReferences:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, []),
            ([], []),
            (["A", "", "B"], ["A", "B"]),
            ('["A", "B"]', ["A", "B"]),
            ("A\n\nB\n", ["A", "B"]),
            ("Single source", ["Single source"]),
        ],
    )
    def test_shapes(self, raw, expected):
        assert normalize_references(raw) == expected


class TestTranslateStoreErrors:

    @pytest.mark.parametrize(
        "error",
        [
            OperationalError("SELECT 1", {}, ConnectionRefusedError("refused")),
            InterfaceError("SELECT 1", {}, Exception("connection closed")),
            DBAPIError("SELECT 1", {}, Exception("server closed"), connection_invalidated=True),
            ConnectionError("reset by peer"),
            TimeoutError("timed out"),
        ],
    )
    def test_connectivity_errors_are_unavailable(self, error):
        with pytest.raises(DataSourceUnavailable) as exc_info:
            with translate_store_errors("usage store"):
                raise error
        assert "usage store" in str(exc_info.value)
        assert exc_info.value.__cause__ is error

    def test_other_database_errors_propagate(self):
        error = DBAPIError("SELECT 1", {}, Exception("syntax error"))
        with pytest.raises(DBAPIError) as exc_info:
            with translate_store_errors():
                raise error
        assert exc_info.value is error

    def test_unrelated_errors_propagate(self):
        with pytest.raises(KeyError):
            with translate_store_errors():
                raise KeyError("id")
