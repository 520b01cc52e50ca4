from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel, JSONType


class TestType(enum.Enum):
    PRACTICE = "practice"
    QUICK_START = "quick_start"
    CUSTOM = "custom"


class TestStatus(enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class TestSession(BaseModel):
    __tablename__ = "tests"
    __test__ = False  # keep pytest from collecting this class

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    test_type = Column(
        Enum(TestType, name="test_type", values_callable=lambda x: [e.value for e in x]),
        default=TestType.CUSTOM,
        nullable=False
    )
    # tutor_mode, timer_enabled, ngn flags, filters, minutes_per_question
    settings = Column(JSONType, nullable=False, default=dict)

    # Ordered question ids as presented to the user
    question_ids = Column(JSONType, nullable=False, default=list)
    total_questions = Column(Integer, nullable=False, default=0)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    total_time_seconds = Column(Integer, nullable=True)

    status = Column(
        Enum(TestStatus, name="test_status", values_callable=lambda x: [e.value for e in x]),
        default=TestStatus.IN_PROGRESS,
        nullable=False,
        index=True
    )

    # Relationships
    user = relationship("User", back_populates="tests")
    results = relationship(
        "TestResultEntry",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestResultEntry.question_order",
    )
    statistics = relationship("TestStatistics", back_populates="test", uselist=False, cascade="all, delete-orphan")
    topic_performance = relationship("TopicPerformance", back_populates="test", cascade="all, delete-orphan")

    @property
    def tutor_mode(self) -> bool:
        return bool((self.settings or {}).get("tutor_mode", False))
