# subscription/schemas.py
from pydantic import BaseModel
from datetime import datetime
from typing import Dict, Literal, Optional

PlanType = Literal["monthly", "quarterly", "yearly"]

class SubscriptionResponse(BaseModel):
    """Schema for subscription response."""
    id: str
    user_id: str
    plan_type: str
    status: str
    amount_kes: int
    payment_method: str
    transaction_id: Optional[str] = None
    mpesa_receipt_number: Optional[str] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class SubscriptionStatusResponse(BaseModel):
    subscription: Optional[SubscriptionResponse] = None
    is_premium: bool

class PlanInfo(BaseModel):
    price: int
    label: str
    period: str
    savings: Optional[str] = None

class PlansResponse(BaseModel):
    plans: Dict[str, PlanInfo]
    currency: str = "KES"
    free_daily_question_limit: int
