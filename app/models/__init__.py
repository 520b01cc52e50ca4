from app.models.base import Base
from app.models.user import User
from app.models.topic import Topic, Subtopic
from app.models.question import Question, AnswerOption, QuestionType, QuestionDifficulty
from app.models.question_status import UserQuestionStatus, QuestionStatus
from app.models.test_session import TestSession, TestType, TestStatus
from app.models.test_result import TestResultEntry
from app.models.progress import (
    TestStatistics,
    TopicPerformance,
    UserTopicMastery,
    UserProgress,
)

__all__ = [
    "Base",
    "User",
    "Topic",
    "Subtopic",
    "Question",
    "AnswerOption",
    "QuestionType",
    "QuestionDifficulty",
    "UserQuestionStatus",
    "QuestionStatus",
    "TestSession",
    "TestType",
    "TestStatus",
    "TestResultEntry",
    "TestStatistics",
    "TopicPerformance",
    "UserTopicMastery",
    "UserProgress",
]
