"""
Sample Question Source

Serves the bundled sample question set from a JSON file. Useful for
demos and local development without a populated database.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from app.sources.base import (
    DEFAULT_EXPLANATION,
    ClassificationRow,
    DataSourceUnavailable,
    OptionRecord,
    QuestionFilter,
    QuestionRecord,
    QuestionSource,
    SubtopicRecord,
    TopicRecord,
    normalize_references,
    sort_options,
)

logger = logging.getLogger(__name__)


def load_sample_dataset(path: str | Path) -> Dict[str, Any]:
    """Read the raw sample dataset ({"topics": [...], "questions": [...]})."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DataSourceUnavailable(f"Sample questions could not be loaded from {path}: {e}") from e

    if "topics" not in data or "questions" not in data:
        raise DataSourceUnavailable(f"Sample questions file {path} is missing topics or questions")
    return data


class SampleQuestionSource(QuestionSource):
    name = "sample"

    def __init__(self, path: str | Path):
        data = load_sample_dataset(path)

        self._topics = [
            TopicRecord(
                id=t["id"],
                name=t["name"],
                subtopics=[SubtopicRecord(id=s["id"], name=s["name"]) for s in t.get("subtopics", [])],
            )
            for t in sorted(data["topics"], key=lambda t: t["id"])
        ]
        topic_names = {t.id: t.name for t in self._topics}
        subtopic_names = {s.id: s.name for t in self._topics for s in t.subtopics}

        self._questions: Dict[int, QuestionRecord] = {}
        for q in data["questions"]:
            self._questions[q["id"]] = QuestionRecord(
                id=q["id"],
                question_text=q["question_text"],
                topic_id=q["topic_id"],
                sub_topic_id=q["sub_topic_id"],
                topic=topic_names.get(q["topic_id"], ""),
                sub_topic=subtopic_names.get(q["sub_topic_id"], ""),
                question_type=q.get("question_type", "multiple_choice"),
                difficulty=q.get("difficulty", "medium"),
                ngn=bool(q.get("ngn", False)),
                explanation=q.get("explanation") or DEFAULT_EXPLANATION,
                references=normalize_references(q.get("ref_sources")),
                use_partial_scoring=bool(q.get("use_partial_scoring", False)),
                options=sort_options(
                    OptionRecord(
                        option_number=a["option_number"],
                        text=a["answer_text"],
                        is_correct=bool(a["is_correct"]),
                        partial_credit=float(a.get("partial_credit", 0)),
                        penalty_value=float(a.get("penalty_value", 0)),
                    )
                    for a in q["answers"]
                ),
            )

        logger.info(f"Loaded {len(self._questions)} sample questions from {path}")

    async def list_questions(self, question_filter: QuestionFilter) -> List[QuestionRecord]:
        return [q for q in self._questions.values() if question_filter.matches(q)]

    async def get_questions(self, ids: Iterable[int]) -> List[QuestionRecord]:
        return [self._questions[i] for i in ids if i in self._questions]

    async def list_topics(self) -> List[TopicRecord]:
        return list(self._topics)

    async def list_classifications(self) -> List[ClassificationRow]:
        return [
            ClassificationRow(
                question_id=q.id,
                topic_id=q.topic_id,
                sub_topic_id=q.sub_topic_id,
                ngn=q.ngn,
            )
            for q in self._questions.values()
        ]
