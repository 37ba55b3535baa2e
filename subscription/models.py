# subscription/models.py
from sqlalchemy import Column, Integer, String, DateTime
from database import Base
from datetime import datetime
from uuid import uuid4

class Subscription(Base):
    """Represents a premium subscription purchased by a learner."""
    __tablename__ = "subscriptions"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: str = Column(String(36), nullable=False, index=True)
    plan_type: str = Column(String, nullable=False)  # monthly, quarterly, yearly
    status: str = Column(String, nullable=False, default="pending")  # pending, active, expired, cancelled
    amount_kes: int = Column(Integer, nullable=False)
    payment_method: str = Column(String, nullable=False)  # mpesa, airtel, paypal, zelle
    transaction_id: str = Column(String, nullable=True)
    mpesa_receipt_number: str = Column(String, nullable=True)
    starts_at: datetime = Column(DateTime, nullable=True)
    expires_at: datetime = Column(DateTime, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
