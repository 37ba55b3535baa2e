# admin/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from auth.models import Profile
from auth.routes import check_admin_role, check_staff_role
from subscription.models import Subscription
from subscription.schemas import SubscriptionResponse
from payment.models import PaymentTransaction
from payment.schemas import PaymentTransactionResponse
from studybuddy.schemas import ClassProficiencySummary
from studybuddy.services import StudyBuddyService
from database import get_db

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/payments", response_model=List[PaymentTransactionResponse])
def get_payments(
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(check_admin_role)
):
    """Retrieve payment transactions with optional filters."""
    query = db.query(PaymentTransaction)
    if status:
        query = query.filter(PaymentTransaction.status == status)
    if payment_method:
        query = query.filter(PaymentTransaction.payment_method == payment_method)
    return [PaymentTransactionResponse.model_validate(t) for t in query.order_by(PaymentTransaction.created_at.desc()).all()]

@router.get("/subscriptions", response_model=List[SubscriptionResponse])
def get_subscriptions(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(check_admin_role)
):
    """Retrieve subscriptions with optional status filter."""
    query = db.query(Subscription)
    if status:
        query = query.filter(Subscription.status == status)
    return [SubscriptionResponse.model_validate(sub) for sub in query.order_by(Subscription.created_at.desc()).all()]

@router.get("/class-proficiency", response_model=List[ClassProficiencySummary])
def get_class_proficiency(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(check_staff_role)
):
    """Per-skill proficiency across all learners."""
    return StudyBuddyService.class_proficiency_summary(db)
