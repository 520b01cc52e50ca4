"""
Topic Service

Question counts per topic and subtopic for the test creation screen.
"""

import logging
from collections import Counter
from typing import Iterable, List

from app.schemas.topic import Category, NgnSummary, TopicBreakdownResponse, TopicCount
from app.sources import ClassificationRow, QuestionSource, TopicRecord

logger = logging.getLogger(__name__)


def build_categories(
    topics: List[TopicRecord],
    rows: Iterable[ClassificationRow],
) -> List[Category]:
    """Topic tree with question counts; topics without questions count 0."""
    rows = list(rows)
    by_topic = Counter(r.topic_id for r in rows)
    by_subtopic = Counter(r.sub_topic_id for r in rows)

    return [
        Category(
            id=topic.id,
            name=topic.name,
            count=by_topic[topic.id],
            topic_count=len(topic.subtopics),
            topics=[
                TopicCount(id=s.id, name=s.name, count=by_subtopic[s.id])
                for s in topic.subtopics
            ],
        )
        for topic in topics
    ]


class TopicService:
    """Service for topic breakdowns."""

    def __init__(self, source: QuestionSource):
        self.source = source

    async def get_topic_breakdown(self) -> TopicBreakdownResponse:
        topics = await self.source.list_topics()
        rows = await self.source.list_classifications()

        ngn_rows = [r for r in rows if r.ngn]
        ngn_by_topic = Counter(r.topic_id for r in ngn_rows)

        logger.debug(f"Topic breakdown over {len(rows)} questions ({len(ngn_rows)} NGN)")

        return TopicBreakdownResponse(
            topics=build_categories(topics, rows),
            standard_topics=build_categories(topics, (r for r in rows if not r.ngn)),
            ngn=NgnSummary(total=len(ngn_rows), by_topic=dict(sorted(ngn_by_topic.items()))),
        )
