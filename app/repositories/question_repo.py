"""
Question Repository

Data access layer for Question, AnswerOption, Topic and Subtopic models.
"""

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.repositories.base import BaseRepository
from app.models.question import AnswerOption, Question
from app.models.topic import Subtopic, Topic


class QuestionRepository(BaseRepository[Question]):
    """Repository for Question model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Question, db)

    def _with_relations(self):
        return select(self.model).options(
            selectinload(self.model.answers),
            selectinload(self.model.topic),
            selectinload(self.model.subtopic),
        )

    async def list_filtered(
        self,
        topic_ids: Iterable[int] = (),
        subtopic_ids: Iterable[int] = (),
        ngn: Optional[bool] = None,
    ) -> List[Question]:
        """
        Questions matching any of the topics and any of the subtopics.

        An empty id collection leaves that dimension unrestricted.
        ``ngn`` of None returns both NGN and standard questions.
        """
        stmt = self._with_relations()
        topic_ids = list(topic_ids)
        subtopic_ids = list(subtopic_ids)

        if topic_ids:
            stmt = stmt.where(self.model.topic_id.in_(topic_ids))
        if subtopic_ids:
            stmt = stmt.where(self.model.sub_topic_id.in_(subtopic_ids))
        if ngn is not None:
            stmt = stmt.where(self.model.ngn.is_(ngn))

        result = await self.db.execute(stmt.order_by(self.model.id))
        return list(result.scalars().all())

    async def get_many(self, ids: Iterable[int]) -> List[Question]:
        ids = list(ids)
        if not ids:
            return []
        stmt = self._with_relations().where(self.model.id.in_(ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_classifications(self) -> List[tuple]:
        """(question_id, topic_id, sub_topic_id, ngn) for every question."""
        stmt = select(
            self.model.id,
            self.model.topic_id,
            self.model.sub_topic_id,
            self.model.ngn,
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def create_with_answers(self, answers: List[dict], **kwargs) -> Question:
        question = Question(**kwargs)
        question.answers = [AnswerOption(**a) for a in answers]
        self.db.add(question)
        await self.db.flush()
        return question


class TopicRepository(BaseRepository[Topic]):
    """Repository for Topic and its Subtopics."""

    def __init__(self, db: AsyncSession):
        super().__init__(Topic, db)

    async def list_with_subtopics(self) -> List[Topic]:
        stmt = (
            select(self.model)
            .options(selectinload(self.model.subtopics))
            .order_by(self.model.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_or_create(self, id: int, name: str) -> Topic:
        topic = await self.get_by_id(id)
        if topic:
            return topic
        topic = Topic(id=id, name=name)
        self.db.add(topic)
        await self.db.flush()
        return topic

    async def get_or_create_subtopic(self, id: int, topic_id: int, name: str) -> Subtopic:
        result = await self.db.execute(select(Subtopic).where(Subtopic.id == id))
        subtopic = result.scalar_one_or_none()
        if subtopic:
            return subtopic
        subtopic = Subtopic(id=id, topic_id=topic_id, name=name)
        self.db.add(subtopic)
        await self.db.flush()
        return subtopic
