# subscription/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from subscription.services import SubscriptionService
from subscription.schemas import SubscriptionResponse, SubscriptionStatusResponse, PlansResponse
from auth.routes import get_current_user
from auth.models import Profile
from database import get_db

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

@router.get("/plans", response_model=PlansResponse)
def get_plans():
    """List the plans with prices in KES."""
    return SubscriptionService.get_plans()

@router.get("/me", response_model=SubscriptionStatusResponse)
def get_my_subscription(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Return the authoritative subscription and whether it is still running."""
    active_sub = SubscriptionService.get_active_subscription(current_user.user_id, db)
    return SubscriptionStatusResponse(
        subscription=SubscriptionResponse.model_validate(active_sub) if active_sub else None,
        is_premium=SubscriptionService.is_premium(active_sub)
    )

@router.get("/", response_model=List[SubscriptionResponse])
def get_user_subscriptions(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Retrieve user subscriptions."""
    return SubscriptionService.get_user_subscriptions(current_user.user_id, db)
