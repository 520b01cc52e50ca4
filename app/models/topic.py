from sqlalchemy import Column, String, Integer, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.database import Base
from .base import TimestampMixin


class Topic(TimestampMixin, Base):
    """NCLEX client-needs category (e.g. Safety and Infection Control)."""
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    # Relationships
    subtopics = relationship(
        "Subtopic",
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="Subtopic.id",
    )
    questions = relationship("Question", back_populates="topic")


# ===================
# Subtopic Model
# ===================
class Subtopic(TimestampMixin, Base):
    __tablename__ = "subtopics"

    id = Column(Integer, primary_key=True, autoincrement=True)

    topic_id = Column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("topic_id", "name", name="uq_subtopic_topic_name"),
    )

    # Relationships
    topic = relationship("Topic", back_populates="subtopics")
    questions = relationship("Question", back_populates="subtopic")
