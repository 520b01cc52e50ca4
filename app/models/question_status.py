from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class QuestionStatus(str, enum.Enum):
    UNUSED = "unused"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    MARKED = "marked"
    SKIPPED = "skipped"


class UserQuestionStatus(BaseModel):
    """
    A user's latest outcome on a question. No row means the question
    is unused for that user.
    """
    __tablename__ = "question_status"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), default=QuestionStatus.UNUSED.value, nullable=False, index=True)
    attempts_count = Column(Integer, default=0, nullable=False)
    correct_count = Column(Integer, default=0, nullable=False)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_question_status_user_question"),
        CheckConstraint(
            "status IN ('unused', 'correct', 'incorrect', 'marked', 'skipped')",
            name="ck_question_status_status",
        ),
    )

    user = relationship("User", back_populates="question_statuses")
    question = relationship("Question")
