# studybuddy/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from studybuddy.services import StudyBuddyService
from studybuddy.schemas import ActivityReportCreate, ActivityReportResponse, NextActivity, LearnerSkillResponse
from auth.routes import get_current_user
from auth.models import Profile
from database import get_db

router = APIRouter(prefix="/studybuddy", tags=["studybuddy"])

@router.post("/report", response_model=ActivityReportResponse)
def report_activity(
    report: ActivityReportCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Record a finished activity and update the learner's skill."""
    return StudyBuddyService.report_activity(current_user.user_id, report, db)

@router.get("/next", response_model=NextActivity)
def get_next_activity(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return StudyBuddyService.next_activity(current_user.user_id, db)

@router.get("/skills", response_model=List[LearnerSkillResponse])
def get_skills(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return StudyBuddyService.get_skills(current_user.user_id, db)
