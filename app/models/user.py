from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    """
    A learner. The id is the subject issued by the hosted auth provider,
    so rows are provisioned on first authenticated request.
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=True, index=True)
    full_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships - User OWNS these
    question_statuses = relationship("UserQuestionStatus", back_populates="user", cascade="all, delete-orphan")
    tests = relationship("TestSession", back_populates="user", cascade="all, delete-orphan")
    topic_mastery = relationship("UserTopicMastery", back_populates="user", cascade="all, delete-orphan")
    progress = relationship("UserProgress", back_populates="user", uselist=False, cascade="all, delete-orphan")
