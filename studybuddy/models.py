# studybuddy/models.py
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, UniqueConstraint
from database import Base
from datetime import datetime
from uuid import uuid4

class StudyActivity(Base):
    """A practice item targeting one CBC skill."""
    __tablename__ = "study_activities"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: str = Column(String, nullable=False)
    description: str = Column(String, nullable=True)
    skill_code: str = Column(String, nullable=False, index=True)
    difficulty: float = Column(Float, nullable=False, default=0.5)
    locale: str = Column(String, nullable=False, default="ke")
    estimated_time_sec: int = Column(Integer, nullable=False, default=60)
    content: dict = Column(JSON, nullable=True)

class LearnerSkill(Base):
    """Current proficiency of a learner on one skill."""
    __tablename__ = "learner_skills"
    __table_args__ = (UniqueConstraint("user_id", "skill_code", name="uq_learner_skill"),)

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: str = Column(String(36), nullable=False, index=True)
    skill_code: str = Column(String, nullable=False)
    proficiency: float = Column(Float, nullable=False, default=0.5)
    last_practiced_at: datetime = Column(DateTime, nullable=True)

class ActivityReport(Base):
    """Append-only log of completed activities."""
    __tablename__ = "activity_reports"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: str = Column(String(36), nullable=False, index=True)
    activity_id: str = Column(String(36), ForeignKey("study_activities.id"), nullable=False)
    score: float = Column(Float, nullable=False)
    time_spent_sec: int = Column(Integer, nullable=False)
    report_metadata: dict = Column("metadata", JSON, nullable=True)
    completed_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow)
