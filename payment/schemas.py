# payment/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, List, Optional
from subscription.schemas import PlanType

class PaymentTransactionResponse(BaseModel):
    """Schema for payment transaction response."""
    id: str
    subscription_id: Optional[str] = None
    user_id: str
    plan_type: Optional[str] = None
    amount_kes: int
    amount_paid_kes: Optional[int] = None
    payment_method: str
    checkout_request_id: Optional[str] = None
    merchant_request_id: Optional[str] = None
    mpesa_receipt_number: Optional[str] = None
    phone_number: Optional[str] = None
    status: str
    result_code: Optional[str] = None
    result_desc: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class PaymentStatusResponse(BaseModel):
    status: str
    mpesa_receipt_number: Optional[str] = None

class MpesaSTKRequest(BaseModel):
    """Schema for starting an M-Pesa STK push."""
    phone_number: str
    amount: float
    plan_type: PlanType

class MpesaSTKResponse(BaseModel):
    success: bool
    message: str
    checkout_request_id: str
    merchant_request_id: Optional[str] = None
    subscription_id: str

# Callback payload, as posted by Safaricom
class CallbackItem(BaseModel):
    Name: str
    Value: Optional[Any] = None

class StkCallbackMetadata(BaseModel):
    Item: List[CallbackItem] = []

class StkCallback(BaseModel):
    MerchantRequestID: str
    CheckoutRequestID: str
    ResultCode: int
    ResultDesc: str
    CallbackMetadata: Optional[StkCallbackMetadata] = None

class CallbackBody(BaseModel):
    stkCallback: StkCallback

class MpesaCallbackPayload(BaseModel):
    Body: CallbackBody

class PayPalCreateOrderRequest(BaseModel):
    plan_type: PlanType
    amount_kes: float
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None

class PayPalCreateOrderResponse(BaseModel):
    success: bool
    order_id: str
    approval_url: Optional[str] = None

class PayPalCaptureRequest(BaseModel):
    order_id: str = Field(min_length=1)

class PayPalCaptureResponse(BaseModel):
    success: bool
    subscription_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    message: Optional[str] = None
