from app.repositories.base import BaseRepository
from app.repositories.user_repo import UserRepository
from app.repositories.question_repo import QuestionRepository, TopicRepository
from app.repositories.question_status_repo import QuestionStatusRepository
from app.repositories.session_repo import TestSessionRepository, TestResultRepository
from app.repositories.progress_repo import (
    TestStatisticsRepository,
    TopicPerformanceRepository,
    UserTopicMasteryRepository,
    UserProgressRepository,
)

__all__ = [
    "BaseRepository",
    "UserRepository",
    "QuestionRepository",
    "TopicRepository",
    "QuestionStatusRepository",
    "TestSessionRepository",
    "TestResultRepository",
    "TestStatisticsRepository",
    "TopicPerformanceRepository",
    "UserTopicMasteryRepository",
    "UserProgressRepository",
]
