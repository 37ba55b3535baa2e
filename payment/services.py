# payment/services.py
import logging
import re
from fastapi import HTTPException
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Dict, List, Optional

from payment.gateways import MpesaGateway, PayPalGateway, PaymentGatewayError, GatewayConfigurationError
from payment.models import PaymentTransaction
from payment.schemas import (
    PaymentTransactionResponse, PaymentStatusResponse, MpesaSTKRequest, MpesaSTKResponse,
    MpesaCallbackPayload, StkCallback, PayPalCreateOrderRequest, PayPalCreateOrderResponse, PayPalCaptureResponse,
)
from subscription.models import Subscription
from subscription.services import SubscriptionService
from config import settings

logger = logging.getLogger(__name__)

KENYAN_MOBILE_RE = re.compile(r"^254(7|1)\d{8}$")

ACCEPTED = {"ResultCode": 0, "ResultDesc": "Accepted"}
ALREADY_PROCESSED = {"ResultCode": 0, "ResultDesc": "Already processed"}


def gateway_http_error(error: PaymentGatewayError) -> HTTPException:
    """Provider rejections keep the provider's message; transport failures stay generic."""
    if error.vendor_message:
        return HTTPException(status_code=400, detail=error.vendor_message)
    return HTTPException(status_code=502, detail=str(error))


class PaymentService:
    @staticmethod
    def normalize_phone(phone_number: str) -> str:
        """Bring 07XX, 01XX, +254 and 254 forms to 254XXXXXXXXX."""
        phone = re.sub(r"\s+", "", phone_number or "")
        if phone.startswith("+"):
            phone = phone[1:]
        elif phone.startswith("0"):
            phone = "254" + phone[1:]
        if not KENYAN_MOBILE_RE.match(phone):
            raise HTTPException(status_code=400, detail="Invalid phone number, use a Safaricom number like 0712345678")
        return phone

    @staticmethod
    def is_allowed_callback_ip(client_ip: str) -> bool:
        return any(client_ip.startswith(prefix) for prefix in settings.MPESA_ALLOWED_IP_PREFIXES)

    @staticmethod
    def authorize_callback_origin(client_ip: str) -> None:
        """Reject unknown callback origins in production; only warn in sandbox."""
        if PaymentService.is_allowed_callback_ip(client_ip):
            return
        if settings.is_production:
            logger.error(f"Rejected M-Pesa callback from unrecognized IP {client_ip}")
            raise HTTPException(status_code=403, detail="Forbidden")
        logger.warning(f"M-Pesa callback from unrecognized IP {client_ip} accepted in {settings.ENVIRONMENT} mode")

    @staticmethod
    def initiate_mpesa(user_id: str, data: MpesaSTKRequest, db: Session) -> MpesaSTKResponse:
        amount = SubscriptionService.validate_plan_amount(data.plan_type, data.amount)
        phone = PaymentService.normalize_phone(data.phone_number)
        logger.info(f"M-Pesa STK push request: user={user_id}, plan={data.plan_type}, amount={amount}")

        try:
            gateway = MpesaGateway()
        except GatewayConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        try:
            stk_data = gateway.stk_push(phone, amount, data.plan_type)
        except PaymentGatewayError as e:
            raise gateway_http_error(e)

        subscription = Subscription(
            user_id=user_id,
            plan_type=data.plan_type,
            amount_kes=amount,
            payment_method="mpesa",
            status="pending"
        )
        db.add(subscription)
        db.flush()
        transaction = PaymentTransaction(
            subscription_id=subscription.id,
            user_id=user_id,
            plan_type=data.plan_type,
            amount_kes=amount,
            payment_method="mpesa",
            checkout_request_id=stk_data.get("CheckoutRequestID"),
            merchant_request_id=stk_data.get("MerchantRequestID"),
            phone_number=phone,
            status="pending"
        )
        db.add(transaction)
        db.commit()

        return MpesaSTKResponse(
            success=True,
            message="STK Push sent successfully. Please check your phone.",
            checkout_request_id=transaction.checkout_request_id,
            merchant_request_id=transaction.merchant_request_id,
            subscription_id=subscription.id
        )

    @staticmethod
    def callback_metadata(callback: StkCallback) -> Dict[str, Any]:
        if not callback.CallbackMetadata:
            return {}
        return {item.Name: item.Value for item in callback.CallbackMetadata.Item}

    @staticmethod
    def handle_mpesa_callback(payload: MpesaCallbackPayload, db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Apply a Safaricom STK callback. Always returns the acknowledgment Safaricom expects."""
        callback = payload.Body.stkCallback
        try:
            transaction = db.query(PaymentTransaction).filter(
                PaymentTransaction.checkout_request_id == callback.CheckoutRequestID,
                PaymentTransaction.payment_method == "mpesa"
            ).first()
            if not transaction:
                logger.error(f"Transaction not found for CheckoutRequestID {callback.CheckoutRequestID}")
                return ACCEPTED

            if transaction.is_terminal:
                logger.info(f"Callback for {callback.CheckoutRequestID} already processed with status {transaction.status}")
                return ALREADY_PROCESSED

            subscription = transaction.subscription
            transaction.result_code = str(callback.ResultCode)
            transaction.result_desc = callback.ResultDesc

            if callback.ResultCode == 0:
                metadata = PaymentService.callback_metadata(callback)
                receipt = metadata.get("MpesaReceiptNumber")
                paid = metadata.get("Amount")
                paid_amount = int(round(float(paid))) if paid is not None else None

                if paid_amount is None:
                    logger.warning(f"M-Pesa callback {callback.CheckoutRequestID} carried no Amount")
                elif paid_amount != transaction.amount_kes:
                    logger.warning(
                        f"Amount mismatch for {callback.CheckoutRequestID}: expected {transaction.amount_kes}, paid {paid_amount}"
                    )
                    transaction.result_desc = (
                        f"{callback.ResultDesc} (amount mismatch: expected {transaction.amount_kes}, paid {paid_amount})"
                    )

                transaction.status = "completed"
                transaction.mpesa_receipt_number = str(receipt) if receipt is not None else None
                transaction.amount_paid_kes = paid_amount

                if subscription is not None:
                    starts_at = now or datetime.utcnow()
                    subscription.status = "active"
                    subscription.mpesa_receipt_number = transaction.mpesa_receipt_number
                    subscription.starts_at = starts_at
                    subscription.expires_at = SubscriptionService.compute_expiry(subscription.plan_type, starts_at)
                else:
                    logger.error(f"Transaction {transaction.id} has no subscription to activate")
                db.commit()
                logger.info(
                    f"Payment completed: receipt={transaction.mpesa_receipt_number}, amount={paid_amount}, subscription_id={transaction.subscription_id}"
                )
            else:
                transaction.status = "failed"
                if subscription is not None:
                    subscription.status = "cancelled"
                db.commit()
                logger.info(f"Payment failed for {callback.CheckoutRequestID}: {callback.ResultDesc}")
        except Exception as e:
            db.rollback()
            logger.error(f"Error processing M-Pesa callback {callback.CheckoutRequestID}: {str(e)}", exc_info=True)
        return ACCEPTED

    @staticmethod
    def create_paypal_order(user_id: str, data: PayPalCreateOrderRequest, db: Session) -> PayPalCreateOrderResponse:
        amount = SubscriptionService.validate_plan_amount(data.plan_type, data.amount_kes)
        amount_usd = f"{amount * settings.PAYPAL_KES_TO_USD_RATE:.2f}"
        logger.info(f"Creating PayPal order: {data.plan_type}, KES {amount} -> USD {amount_usd}")

        try:
            gateway = PayPalGateway()
        except GatewayConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        try:
            order = gateway.create_order(
                user_id=user_id,
                plan_type=data.plan_type,
                amount_usd=amount_usd,
                return_url=data.return_url or settings.PAYPAL_RETURN_URL,
                cancel_url=data.cancel_url or settings.PAYPAL_CANCEL_URL,
            )
        except PaymentGatewayError as e:
            raise gateway_http_error(e)

        transaction = PaymentTransaction(
            user_id=user_id,
            plan_type=data.plan_type,
            amount_kes=amount,
            payment_method="paypal",
            status="initiated",
            checkout_request_id=order["id"],
            result_desc=f"PayPal order for {data.plan_type} plan"
        )
        db.add(transaction)
        db.commit()

        return PayPalCreateOrderResponse(
            success=True,
            order_id=order["id"],
            approval_url=PayPalGateway.approval_url(order)
        )

    @staticmethod
    def capture_paypal_order(user_id: str, order_id: str, db: Session, now: Optional[datetime] = None) -> PayPalCaptureResponse:
        transaction = db.query(PaymentTransaction).filter(
            PaymentTransaction.checkout_request_id == order_id,
            PaymentTransaction.payment_method == "paypal"
        ).first()
        if not transaction:
            raise HTTPException(status_code=404, detail="Order not found")
        if transaction.user_id != user_id:
            logger.warning(f"User {user_id} tried to capture order {order_id} owned by {transaction.user_id}")
            raise HTTPException(status_code=403, detail="Order belongs to another user")

        if transaction.is_terminal:
            subscription = transaction.subscription
            return PayPalCaptureResponse(
                success=transaction.status == "completed",
                subscription_id=transaction.subscription_id,
                expires_at=subscription.expires_at if subscription else None,
                message="Already processed"
            )

        logger.info(f"Capturing PayPal order: {order_id} for user {user_id}")
        try:
            gateway = PayPalGateway()
        except GatewayConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        try:
            capture = gateway.capture_order(order_id)
        except PaymentGatewayError as e:
            raise gateway_http_error(e)

        capture_status = capture.get("status")
        if capture_status != "COMPLETED":
            transaction.result_code = str(capture_status)
            transaction.result_desc = "Payment not completed"
            db.commit()
            raise HTTPException(status_code=400, detail="Payment not completed")

        capture_id = PayPalGateway.capture_id(capture)
        starts_at = now or datetime.utcnow()
        expires_at = SubscriptionService.compute_expiry(transaction.plan_type, starts_at)

        subscription = Subscription(
            user_id=user_id,
            plan_type=transaction.plan_type,
            status="active",
            amount_kes=transaction.amount_kes,
            payment_method="paypal",
            transaction_id=capture_id,
            starts_at=starts_at,
            expires_at=expires_at
        )
        db.add(subscription)
        db.flush()

        transaction.status = "completed"
        transaction.result_code = "0"
        transaction.result_desc = "Payment successful"
        transaction.mpesa_receipt_number = capture_id
        transaction.subscription_id = subscription.id
        db.commit()
        logger.info(f"Subscription created: {subscription.id}, expires: {expires_at.isoformat()}")

        return PayPalCaptureResponse(success=True, subscription_id=subscription.id, expires_at=expires_at)

    @staticmethod
    def get_payment_status(user_id: str, checkout_request_id: str, db: Session) -> PaymentStatusResponse:
        transaction = db.query(PaymentTransaction).filter(
            PaymentTransaction.checkout_request_id == checkout_request_id,
            PaymentTransaction.user_id == user_id
        ).first()
        if not transaction:
            raise HTTPException(status_code=404, detail="Payment not found")
        return PaymentStatusResponse(status=transaction.status, mpesa_receipt_number=transaction.mpesa_receipt_number)

    @staticmethod
    def get_user_payments(user_id: str, db: Session) -> List[PaymentTransactionResponse]:
        payments = db.query(PaymentTransaction).filter(
            PaymentTransaction.user_id == user_id
        ).order_by(PaymentTransaction.created_at.desc()).all()
        return [PaymentTransactionResponse.model_validate(p) for p in payments]
