# payment/routes.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import List
from payment.services import PaymentService
from payment.schemas import (
    PaymentTransactionResponse, PaymentStatusResponse, MpesaSTKRequest, MpesaSTKResponse, MpesaCallbackPayload,
    PayPalCreateOrderRequest, PayPalCreateOrderResponse, PayPalCaptureRequest, PayPalCaptureResponse,
)
from auth.routes import get_current_user
from auth.models import Profile
from database import get_db
from utils.network import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

@router.post("/mpesa/stk-push", response_model=MpesaSTKResponse)
def mpesa_stk_push(
    data: MpesaSTKRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Start an M-Pesa STK push for a plan at its listed price."""
    return PaymentService.initiate_mpesa(current_user.user_id, data, db)

async def read_mpesa_callback(request: Request) -> MpesaCallbackPayload:
    """Check the caller's origin, then parse the body."""
    PaymentService.authorize_callback_origin(get_client_ip(request))
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    logger.info(f"M-Pesa callback received: {body}")
    try:
        return MpesaCallbackPayload.model_validate(body)
    except ValidationError as e:
        logger.error(f"Malformed M-Pesa callback: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid callback payload")

@router.post("/mpesa/callback")
def mpesa_callback(
    payload: MpesaCallbackPayload = Depends(read_mpesa_callback),
    db: Session = Depends(get_db)
):
    """Receive the STK push result from Safaricom."""
    return PaymentService.handle_mpesa_callback(payload, db)

@router.post("/paypal/create-order", response_model=PayPalCreateOrderResponse)
def paypal_create_order(
    data: PayPalCreateOrderRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return PaymentService.create_paypal_order(current_user.user_id, data, db)

@router.post("/paypal/capture-order", response_model=PayPalCaptureResponse)
def paypal_capture_order(
    data: PayPalCaptureRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Capture an approved PayPal order and activate the subscription."""
    return PaymentService.capture_paypal_order(current_user.user_id, data.order_id, db)

@router.get("/status/{checkout_request_id}", response_model=PaymentStatusResponse)
def check_payment_status(
    checkout_request_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    """Poll the state of one of the caller's payments."""
    return PaymentService.get_payment_status(current_user.user_id, checkout_request_id, db)

@router.get("/", response_model=List[PaymentTransactionResponse])
def get_user_payments(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return PaymentService.get_user_payments(current_user.user_id, db)
