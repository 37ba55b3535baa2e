# payment/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from uuid import uuid4

TERMINAL_STATUSES = ("completed", "failed", "cancelled")

class PaymentTransaction(Base):
    """Represents one payment attempt with a provider."""
    __tablename__ = "payment_transactions"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    subscription_id: str = Column(String(36), ForeignKey("subscriptions.id"), nullable=True)
    user_id: str = Column(String(36), nullable=False, index=True)
    plan_type: str = Column(String, nullable=True)
    amount_kes: int = Column(Integer, nullable=False)
    amount_paid_kes: int = Column(Integer, nullable=True)  # as reported by the provider
    payment_method: str = Column(String, nullable=False)  # mpesa, paypal
    checkout_request_id: str = Column(String, nullable=True, index=True)  # STK CheckoutRequestID or PayPal order id
    merchant_request_id: str = Column(String, nullable=True)
    mpesa_receipt_number: str = Column(String, nullable=True)  # also holds the PayPal capture id
    phone_number: str = Column(String, nullable=True)
    status: str = Column(String, nullable=False, default="initiated")  # initiated, pending, completed, failed, cancelled
    result_code: str = Column(String, nullable=True)
    result_desc: str = Column(String, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    subscription = relationship("Subscription")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
