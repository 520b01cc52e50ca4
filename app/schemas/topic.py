"""
Topic Schemas

Topic breakdown and question-status counts for the test creation screen.
"""

from typing import Dict, List

from pydantic import BaseModel, Field


class TopicCount(BaseModel):
    """A subtopic entry inside a category."""
    id: int
    name: str
    count: int


class Category(BaseModel):
    """A top-level topic with its subtopic counts."""
    id: int
    name: str
    count: int
    topic_count: int
    topics: List[TopicCount]


class NgnSummary(BaseModel):
    total: int
    by_topic: Dict[int, int] = Field(default_factory=dict)


class TopicBreakdownResponse(BaseModel):
    topics: List[Category]
    standard_topics: List[Category]
    ngn: NgnSummary


class StatusCount(BaseModel):
    id: str
    label: str
    count: int


class StatusCountsResponse(BaseModel):
    include_ngn: bool
    counts: List[StatusCount]


class UnusedCountResponse(BaseModel):
    include_ngn: bool
    unused_count: int
