# studybuddy/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional

class ActivityReportCreate(BaseModel):
    """Schema for reporting a finished activity."""
    activity_id: str
    score: float = Field(ge=0.0, le=1.0)
    time_spent_sec: int = Field(gt=0)
    metadata: Dict[str, Any] = {}

class SkillUpdate(BaseModel):
    skill_code: str
    old_proficiency: float
    new_proficiency: float

class NextActivity(BaseModel):
    activity_id: str
    title: str
    description: Optional[str] = None
    skill_code: str
    difficulty: float
    estimated_time_sec: int
    content: Optional[Dict[str, Any]] = None

class ActivityReportResponse(BaseModel):
    success: bool
    updated_skills: SkillUpdate
    next_activity: Optional[NextActivity] = None

class LearnerSkillResponse(BaseModel):
    skill_code: str
    proficiency: float
    last_practiced_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ClassProficiencySummary(BaseModel):
    skill_code: str
    skill_title: str
    avg_proficiency: float
    learner_count: int
    min_proficiency: float
    max_proficiency: float
