"""
Question Source Module

Question data access behind the Strategy Pattern. The active source is
chosen by configuration (QUESTION_SOURCE setting) and handed to the
services, which never check which source they were given.

- "database": questions, answers and topics from the relational store
- "sample":   the bundled sample set (app/data/sample_questions.json)

There is no fallback between sources: when the configured source fails,
callers get DataSourceUnavailable.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.sources.base import (
    ClassificationRow,
    DataSourceUnavailable,
    OptionRecord,
    QuestionFilter,
    QuestionRecord,
    QuestionSource,
    SubtopicRecord,
    TopicRecord,
    normalize_references,
    translate_store_errors,
)
from app.sources.database import DatabaseQuestionSource
from app.sources.sample import SampleQuestionSource, load_sample_dataset

# The sample source holds the parsed file, so it is built once
_sample_instance: SampleQuestionSource | None = None


def get_question_source(db: AsyncSession) -> QuestionSource:
    """
    Factory returning the configured question source.

    Raises:
        ValueError: If QUESTION_SOURCE is not a valid option
    """
    global _sample_instance

    source = settings.QUESTION_SOURCE.lower()

    if source == "database":
        return DatabaseQuestionSource(db)

    elif source == "sample":
        if _sample_instance is None:
            _sample_instance = SampleQuestionSource(settings.SAMPLE_QUESTIONS_PATH)
        return _sample_instance

    else:
        raise ValueError(
            f"Unknown question source: {source}. "
            f"Valid options: database, sample"
        )


def reset_question_source() -> None:
    """
    Drop the cached sample source so the next call re-reads configuration.
    """
    global _sample_instance
    _sample_instance = None


__all__ = [
    "get_question_source",
    "reset_question_source",
    "QuestionSource",
    "DatabaseQuestionSource",
    "SampleQuestionSource",
    "load_sample_dataset",
    "QuestionFilter",
    "QuestionRecord",
    "OptionRecord",
    "TopicRecord",
    "SubtopicRecord",
    "ClassificationRow",
    "DataSourceUnavailable",
    "normalize_references",
    "translate_store_errors",
]
