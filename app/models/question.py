from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.db.database import Base
from .base import JSONType, TimestampMixin


class QuestionType(enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SATA = "sata"
    HOT_SPOT = "hot_spot"
    FILL_IN_THE_BLANK = "fill_in_the_blank"
    DRAG_AND_DROP = "drag_and_drop"
    CHART_OR_GRAPHIC = "chart_or_graphic"
    GRAPHIC_ANSWER = "graphic_answer"
    AUDIO_QUESTION = "audio_question"
    EXTENDED_MULTIPLE_RESPONSE = "extended_multiple_response"
    EXTENDED_DRAG_AND_DROP = "extended_drag_and_drop"
    CLOZE_DROPDOWN = "cloze_dropdown"
    MATRIX_GRID = "matrix_grid"
    BOW_TIE = "bow_tie"
    ENHANCED_HOT_SPOT = "enhanced_hot_spot"


class QuestionDifficulty(enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Question(TimestampMixin, Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Classification
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=False, index=True)
    sub_topic_id = Column(Integer, ForeignKey("subtopics.id"), nullable=False, index=True)

    question_text = Column(Text, nullable=False)
    question_type = Column(
        Enum(
            QuestionType,
            name="question_type",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=QuestionType.MULTIPLE_CHOICE,
        nullable=False
    )
    difficulty = Column(
        Enum(
            QuestionDifficulty,
            name="question_difficulty",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=QuestionDifficulty.MEDIUM,
        nullable=False
    )
    ngn = Column(Boolean, default=False, nullable=False, index=True)

    explanation = Column(Text, nullable=True)
    # Either a JSON list of citations or newline separated text
    ref_sources = Column(JSONType, nullable=True)

    use_partial_scoring = Column(Boolean, default=False, nullable=False)

    # Relationships
    topic = relationship("Topic", back_populates="questions")
    subtopic = relationship("Subtopic", back_populates="questions")
    answers = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.option_number",
    )


# ===================
# Answer Option Model
# ===================
class AnswerOption(TimestampMixin, Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    option_number = Column(Integer, nullable=False)
    answer_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)

    # Weights used when the question has partial scoring enabled
    partial_credit = Column(Numeric(3, 2), default=0, nullable=False)
    penalty_value = Column(Numeric(3, 2), default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("question_id", "option_number", name="uq_answer_question_option"),
        CheckConstraint("partial_credit >= 0 AND partial_credit <= 1", name="ck_answer_partial_credit"),
        CheckConstraint("penalty_value >= 0 AND penalty_value <= 1", name="ck_answer_penalty_value"),
    )

    question = relationship("Question", back_populates="answers")
