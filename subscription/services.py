# subscription/services.py
import logging
from fastapi import HTTPException
from sqlalchemy.orm import Session
from datetime import datetime
from dateutil.relativedelta import relativedelta
from typing import List, Optional
from subscription.models import Subscription
from subscription.schemas import SubscriptionResponse, PlansResponse, PlanInfo
from config import settings

logger = logging.getLogger(__name__)

PLAN_INTERVALS = {
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}

PLAN_LABELS = {
    "monthly": ("Monthly", "month", None),
    "quarterly": ("Quarterly", "3 months", "20%"),
    "yearly": ("Yearly", "year", "40%"),
}

class SubscriptionService:
    @staticmethod
    def compute_expiry(plan_type: str, starts_at: datetime) -> datetime:
        """Add the plan interval on the calendar, so Jan 31 + 1 month is the end of February."""
        if plan_type not in PLAN_INTERVALS:
            raise ValueError(f"Unknown plan type: {plan_type}")
        return starts_at + PLAN_INTERVALS[plan_type]

    @staticmethod
    def validate_plan_amount(plan_type: str, amount: float) -> int:
        """Return the listed price; any other amount is rejected, never adjusted."""
        price = settings.SUBSCRIPTION_PRICES.get(plan_type)
        if price is None:
            raise HTTPException(status_code=400, detail="Invalid plan type")
        if amount != price:
            raise HTTPException(status_code=400, detail=f"Invalid amount for {plan_type} plan, expected {price} KES")
        return price

    @staticmethod
    def get_active_subscription(user_id: str, db: Session) -> Optional[Subscription]:
        """The authoritative subscription is the active one that runs the longest."""
        return db.query(Subscription).filter(
            Subscription.user_id == user_id,
            Subscription.status == "active"
        ).order_by(Subscription.expires_at.desc()).first()

    @staticmethod
    def is_premium(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
        if subscription is None or subscription.expires_at is None:
            return False
        return subscription.expires_at > (now or datetime.utcnow())

    @staticmethod
    def get_user_subscriptions(user_id: str, db: Session) -> List[SubscriptionResponse]:
        subs = db.query(Subscription).filter(
            Subscription.user_id == user_id
        ).order_by(Subscription.created_at.desc()).all()
        return [SubscriptionResponse.model_validate(s) for s in subs]

    @staticmethod
    def get_plans() -> PlansResponse:
        plans = {}
        for plan_type, price in settings.SUBSCRIPTION_PRICES.items():
            label, period, savings = PLAN_LABELS.get(plan_type, (plan_type.capitalize(), plan_type, None))
            plans[plan_type] = PlanInfo(price=price, label=label, period=period, savings=savings)
        return PlansResponse(plans=plans, free_daily_question_limit=settings.FREE_DAILY_QUESTION_LIMIT)

    @staticmethod
    def expire_lapsed_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
        """Mark active subscriptions past their expiry as expired."""
        now = now or datetime.utcnow()
        lapsed = db.query(Subscription).filter(
            Subscription.status == "active",
            Subscription.expires_at < now
        ).all()
        for sub in lapsed:
            sub.status = "expired"
        db.commit()
        if lapsed:
            logger.info(f"Expired {len(lapsed)} lapsed subscriptions")
        return len(lapsed)
