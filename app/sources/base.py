"""
Question Source Abstract Base Class

Every question source (database, bundled sample set) implements this
interface. The active source is picked by the QUESTION_SOURCE setting and
injected into the services, so callers never know which one they have.
"""

import json
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

DEFAULT_EXPLANATION = "No explanation available"


class DataSourceUnavailable(Exception):
    """The question store or usage store could not be reached."""


@contextmanager
def translate_store_errors(what: str = "question store"):
    """
    Re-raise connectivity failures from the store as DataSourceUnavailable.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        raise DataSourceUnavailable(f"{what} unavailable: {e.orig or e}") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise DataSourceUnavailable(f"{what} connection lost") from e
        raise
    except (ConnectionError, TimeoutError) as e:
        raise DataSourceUnavailable(f"{what} unavailable: {e}") from e


# ============================================================
# Records
# ============================================================

@dataclass(frozen=True)
class OptionRecord:
    option_number: int
    text: str
    is_correct: bool
    partial_credit: float = 0.0
    penalty_value: float = 0.0


@dataclass(frozen=True)
class QuestionRecord:
    id: int
    question_text: str
    topic_id: int
    sub_topic_id: int
    topic: str = ""
    sub_topic: str = ""
    question_type: str = "multiple_choice"
    difficulty: str = "medium"
    ngn: bool = False
    explanation: str = DEFAULT_EXPLANATION
    references: List[str] = field(default_factory=list)
    use_partial_scoring: bool = False
    options: List[OptionRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SubtopicRecord:
    id: int
    name: str


@dataclass(frozen=True)
class TopicRecord:
    id: int
    name: str
    subtopics: List[SubtopicRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ClassificationRow:
    question_id: int
    topic_id: int
    sub_topic_id: int
    ngn: bool


@dataclass(frozen=True)
class QuestionFilter:
    """
    Topic and subtopic selections are each an inclusive OR and are
    combined with AND. An empty selection leaves that dimension open.
    """
    topic_ids: FrozenSet[int] = frozenset()
    subtopic_ids: FrozenSet[int] = frozenset()
    ngn_only: bool = False
    ngn_enabled: bool = True

    @property
    def ngn(self) -> Optional[bool]:
        """Required NGN flag, or None when both kinds are allowed."""
        if self.ngn_only:
            return True
        if not self.ngn_enabled:
            return False
        return None

    def matches(self, question: QuestionRecord) -> bool:
        if self.topic_ids and question.topic_id not in self.topic_ids:
            return False
        if self.subtopic_ids and question.sub_topic_id not in self.subtopic_ids:
            return False
        ngn = self.ngn
        return ngn is None or question.ngn == ngn


# ============================================================
# Helpers
# ============================================================

def normalize_references(raw: Any) -> List[str]:
    """
    Citations arrive as a list, as JSON text holding a list, or as
    newline separated text.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(r) for r in raw if str(r).strip()]
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(r) for r in parsed if str(r).strip()]
        return [line.strip() for line in text.split("\n") if line.strip()]
    return [str(raw)]


def sort_options(options: Iterable[OptionRecord]) -> List[OptionRecord]:
    return sorted(options, key=lambda o: o.option_number)


# ============================================================
# Interface
# ============================================================

class QuestionSource(ABC):
    """
    Read-only access to the shared question bank.

    Implementations raise DataSourceUnavailable when the backing store
    cannot be reached; they never return partial results.
    """

    name: str = "abstract"

    @abstractmethod
    async def list_questions(self, question_filter: QuestionFilter) -> List[QuestionRecord]:
        """All questions matching the filter, options sorted by ordinal."""

    @abstractmethod
    async def get_questions(self, ids: Iterable[int]) -> List[QuestionRecord]:
        """Questions by id. Unknown ids are omitted."""

    @abstractmethod
    async def list_topics(self) -> List[TopicRecord]:
        """Topic tree, ordered by id."""

    @abstractmethod
    async def list_classifications(self) -> List[ClassificationRow]:
        """Topic, subtopic and NGN flag of every question."""
