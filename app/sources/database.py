"""
Database Question Source

Reads questions from the relational store through QuestionRepository.
"""

from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.question import Question
from app.repositories.question_repo import QuestionRepository, TopicRepository
from app.sources.base import (
    DEFAULT_EXPLANATION,
    ClassificationRow,
    OptionRecord,
    QuestionFilter,
    QuestionRecord,
    QuestionSource,
    SubtopicRecord,
    TopicRecord,
    normalize_references,
    sort_options,
    translate_store_errors,
)


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def to_record(question: Question) -> QuestionRecord:
    options = sort_options(
        OptionRecord(
            option_number=a.option_number,
            text=a.answer_text,
            is_correct=bool(a.is_correct),
            partial_credit=float(a.partial_credit or 0),
            penalty_value=float(a.penalty_value or 0),
        )
        for a in question.answers
    )
    return QuestionRecord(
        id=question.id,
        question_text=question.question_text,
        topic_id=question.topic_id,
        sub_topic_id=question.sub_topic_id,
        topic=question.topic.name if question.topic else "",
        sub_topic=question.subtopic.name if question.subtopic else "",
        question_type=_enum_value(question.question_type),
        difficulty=_enum_value(question.difficulty),
        ngn=bool(question.ngn),
        explanation=question.explanation or DEFAULT_EXPLANATION,
        references=normalize_references(question.ref_sources),
        use_partial_scoring=bool(question.use_partial_scoring),
        options=options,
    )


class DatabaseQuestionSource(QuestionSource):
    name = "database"

    def __init__(self, db: AsyncSession):
        self.question_repo = QuestionRepository(db)
        self.topic_repo = TopicRepository(db)

    async def list_questions(self, question_filter: QuestionFilter) -> List[QuestionRecord]:
        with translate_store_errors():
            questions = await self.question_repo.list_filtered(
                topic_ids=question_filter.topic_ids,
                subtopic_ids=question_filter.subtopic_ids,
                ngn=question_filter.ngn,
            )
        return [to_record(q) for q in questions]

    async def get_questions(self, ids: Iterable[int]) -> List[QuestionRecord]:
        with translate_store_errors():
            questions = await self.question_repo.get_many(ids)
        return [to_record(q) for q in questions]

    async def list_topics(self) -> List[TopicRecord]:
        with translate_store_errors():
            topics = await self.topic_repo.list_with_subtopics()
        return [
            TopicRecord(
                id=t.id,
                name=t.name,
                subtopics=[SubtopicRecord(id=s.id, name=s.name) for s in t.subtopics],
            )
            for t in topics
        ]

    async def list_classifications(self) -> List[ClassificationRow]:
        with translate_store_errors():
            rows = await self.question_repo.list_classifications()
        return [
            ClassificationRow(question_id=qid, topic_id=tid, sub_topic_id=sid, ngn=bool(ngn))
            for qid, tid, sid, ngn in rows
        ]
