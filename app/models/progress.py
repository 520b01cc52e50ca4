"""
Progress Models

Aggregates derived from finished tests. Only the progress aggregator
writes to these tables.
"""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class TestStatistics(BaseModel):
    __tablename__ = "test_statistics"
    __test__ = False

    test_id = Column(Uuid(as_uuid=True), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, unique=True)
    total_questions = Column(Integer, default=0, nullable=False)
    correct_answers = Column(Integer, default=0, nullable=False)
    partially_correct = Column(Integer, default=0, nullable=False)
    incorrect_answers = Column(Integer, default=0, nullable=False)
    skipped_questions = Column(Integer, default=0, nullable=False)
    marked_questions = Column(Integer, default=0, nullable=False)
    average_time_per_question = Column(Float, default=0.0, nullable=False)
    overall_score = Column(Float, default=0.0, nullable=False)  # 0..100

    test = relationship("TestSession", back_populates="statistics")


class TopicPerformance(BaseModel):
    __tablename__ = "topic_performance"

    test_id = Column(Uuid(as_uuid=True), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=False, index=True)
    subtopic_id = Column(Integer, ForeignKey("subtopics.id"), nullable=False)
    total_questions = Column(Integer, default=0, nullable=False)
    correct_answers = Column(Integer, default=0, nullable=False)
    incorrect_answers = Column(Integer, default=0, nullable=False)
    ngn_questions = Column(Integer, default=0, nullable=False)
    score_percentage = Column(Float, default=0.0, nullable=False)

    __table_args__ = (
        UniqueConstraint("test_id", "topic_id", "subtopic_id", name="uq_topic_performance_test_topic_sub"),
    )

    test = relationship("TestSession", back_populates="topic_performance")
    topic = relationship("Topic")
    subtopic = relationship("Subtopic")


class UserTopicMastery(BaseModel):
    __tablename__ = "user_topic_mastery"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=False)
    questions_attempted = Column(Integer, default=0, nullable=False)
    questions_correct = Column(Integer, default=0, nullable=False)
    mastery_level = Column(String(20), default="not_started", nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_user_topic_mastery_user_topic"),
    )

    user = relationship("User", back_populates="topic_mastery")
    topic = relationship("Topic")


class UserProgress(BaseModel):
    __tablename__ = "user_progress"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    total_tests_taken = Column(Integer, default=0, nullable=False)
    total_questions_completed = Column(Integer, default=0, nullable=False)
    total_study_time_minutes = Column(Integer, default=0, nullable=False)
    average_score = Column(Float, default=0.0, nullable=False)
    current_streak_days = Column(Integer, default=0, nullable=False)
    longest_streak_days = Column(Integer, default=0, nullable=False)
    last_study_date = Column(Date, nullable=True)

    user = relationship("User", back_populates="progress")
