# studybuddy/services.py
import logging
import random
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from studybuddy.models import StudyActivity, LearnerSkill, ActivityReport
from studybuddy.schemas import (
    ActivityReportCreate, ActivityReportResponse, SkillUpdate, NextActivity, LearnerSkillResponse,
    ClassProficiencySummary,
)

logger = logging.getLogger(__name__)

LEARNING_RATE = 0.3
DEFAULT_PROFICIENCY = 0.5
DEFAULT_LOCALE = "ke"
CANDIDATE_LIMIT = 5


def update_proficiency(current: float, score: float, difficulty: float) -> float:
    """One exponential-moving-average step, clamped to [0, 1]."""
    new_proficiency = current + LEARNING_RATE * (score - difficulty)
    return max(0.0, min(1.0, new_proficiency))


class StudyBuddyService:
    @staticmethod
    def report_activity(user_id: str, report: ActivityReportCreate, db: Session,
                        rng: Optional[random.Random] = None) -> ActivityReportResponse:
        activity = db.query(StudyActivity).filter(StudyActivity.id == report.activity_id).first()
        if not activity:
            raise HTTPException(status_code=404, detail="Activity not found")

        now = datetime.utcnow()
        db.add(ActivityReport(
            user_id=user_id,
            activity_id=activity.id,
            score=report.score,
            time_spent_sec=report.time_spent_sec,
            report_metadata=report.metadata or {},
            completed_at=now
        ))

        skill = db.query(LearnerSkill).filter(
            LearnerSkill.user_id == user_id,
            LearnerSkill.skill_code == activity.skill_code
        ).first()
        old_proficiency = skill.proficiency if skill else DEFAULT_PROFICIENCY
        new_proficiency = update_proficiency(old_proficiency, report.score, activity.difficulty)

        if skill:
            skill.proficiency = new_proficiency
            skill.last_practiced_at = now
        else:
            db.add(LearnerSkill(
                user_id=user_id,
                skill_code=activity.skill_code,
                proficiency=new_proficiency,
                last_practiced_at=now
            ))
        db.commit()

        logger.info(f"Report for {user_id}: skill {activity.skill_code} updated to {new_proficiency:.2f}")

        return ActivityReportResponse(
            success=True,
            updated_skills=SkillUpdate(
                skill_code=activity.skill_code,
                old_proficiency=old_proficiency,
                new_proficiency=new_proficiency
            ),
            next_activity=StudyBuddyService.recommend_next(user_id, db, rng)
        )

    @staticmethod
    def recommend_next(user_id: str, db: Session, rng: Optional[random.Random] = None) -> Optional[NextActivity]:
        """Pick an activity pitched just above the learner's weakest skill."""
        weakest = db.query(LearnerSkill).filter(
            LearnerSkill.user_id == user_id
        ).order_by(LearnerSkill.proficiency.asc()).first()
        if not weakest:
            return None

        candidates = db.query(StudyActivity).filter(
            StudyActivity.skill_code == weakest.skill_code,
            StudyActivity.locale == DEFAULT_LOCALE,
            StudyActivity.difficulty >= weakest.proficiency - 0.1,
            StudyActivity.difficulty <= weakest.proficiency + 0.2
        ).limit(CANDIDATE_LIMIT).all()
        if not candidates:
            return None
        return StudyBuddyService._to_next((rng or random).choice(candidates))

    @staticmethod
    def next_activity(user_id: str, db: Session, rng: Optional[random.Random] = None) -> NextActivity:
        recommended = StudyBuddyService.recommend_next(user_id, db, rng)
        if recommended:
            return recommended
        starter = db.query(StudyActivity).filter(
            StudyActivity.locale == DEFAULT_LOCALE
        ).order_by(StudyActivity.difficulty.asc()).first()
        if not starter:
            raise HTTPException(status_code=404, detail="No activities available")
        return StudyBuddyService._to_next(starter)

    @staticmethod
    def get_skills(user_id: str, db: Session) -> List[LearnerSkillResponse]:
        skills = db.query(LearnerSkill).filter(
            LearnerSkill.user_id == user_id
        ).order_by(LearnerSkill.skill_code).all()
        return [LearnerSkillResponse.model_validate(s) for s in skills]

    @staticmethod
    def class_proficiency_summary(db: Session) -> List[ClassProficiencySummary]:
        rows = db.query(
            LearnerSkill.skill_code,
            func.avg(LearnerSkill.proficiency),
            func.count(func.distinct(LearnerSkill.user_id)),
            func.min(LearnerSkill.proficiency),
            func.max(LearnerSkill.proficiency)
        ).group_by(LearnerSkill.skill_code).order_by(LearnerSkill.skill_code).all()
        return [
            ClassProficiencySummary(
                skill_code=skill_code,
                skill_title=skill_code,
                avg_proficiency=float(avg),
                learner_count=count,
                min_proficiency=float(low),
                max_proficiency=float(high)
            )
            for skill_code, avg, count, low, high in rows
        ]

    @staticmethod
    def _to_next(activity: StudyActivity) -> NextActivity:
        return NextActivity(
            activity_id=activity.id,
            title=activity.title,
            description=activity.description,
            skill_code=activity.skill_code,
            difficulty=activity.difficulty,
            estimated_time_sec=activity.estimated_time_sec,
            content=activity.content
        )
