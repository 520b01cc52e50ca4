from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class TopicMasteryResponse(BaseModel):
    topic_id: int
    topic_name: Optional[str] = None
    questions_attempted: int
    questions_correct: int
    mastery_level: str

    class Config:
        from_attributes = True


class ReadinessResponse(BaseModel):
    readiness_score: float
    readiness_level: str
    recent_average: float
    mastered_topic_ratio: float
    study_consistency: float
    weak_areas: List[int]
    strong_areas: List[int]


class ProgressResponse(BaseModel):
    total_tests_taken: int = 0
    total_questions_completed: int = 0
    total_study_time_minutes: int = 0
    average_score: float = 0.0
    current_streak_days: int = 0
    longest_streak_days: int = 0
    last_study_date: Optional[date] = None
    mastery: List[TopicMasteryResponse]
    readiness: ReadinessResponse
