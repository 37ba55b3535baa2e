# payment/gateways.py
import base64
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from config import settings

logger = logging.getLogger(__name__)


class GatewayConfigurationError(Exception):
    """Raised when a provider's credentials are missing."""


class PaymentGatewayError(Exception):
    """Raised when a provider call fails or the provider rejects the request."""

    def __init__(self, message: str, status_code: Optional[int] = None, vendor_message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.vendor_message = vendor_message


class MpesaGateway:
    """Safaricom Daraja client: OAuth token plus STK push."""

    def __init__(self):
        self.consumer_key = settings.MPESA_CONSUMER_KEY
        self.consumer_secret = settings.MPESA_CONSUMER_SECRET
        self.passkey = settings.MPESA_PASSKEY
        self.shortcode = settings.MPESA_SHORTCODE
        self.base_url = settings.mpesa_base_url
        self.callback_url = settings.mpesa_callback_url
        self.timeout = settings.VENDOR_TIMEOUT_SECONDS
        if not (self.consumer_key and self.consumer_secret and self.passkey):
            logger.error("Missing M-Pesa credentials")
            raise GatewayConfigurationError("M-Pesa configuration incomplete")

    def get_access_token(self) -> str:
        url = f"{self.base_url}/oauth/v1/generate"
        try:
            response = requests.get(
                url,
                params={"grant_type": "client_credentials"},
                auth=(self.consumer_key, self.consumer_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"M-Pesa OAuth request failed: {str(e)}")
            raise PaymentGatewayError("Failed to authenticate with M-Pesa") from e
        if response.status_code != 200:
            logger.error(f"M-Pesa OAuth non-200 status: {response.status_code}, text={response.text}")
            raise PaymentGatewayError("Failed to authenticate with M-Pesa", status_code=response.status_code)
        logger.info("Got M-Pesa access token")
        return response.json()["access_token"]

    @staticmethod
    def timestamp(now: Optional[datetime] = None) -> str:
        return (now or datetime.utcnow()).strftime("%Y%m%d%H%M%S")

    def password(self, timestamp: str) -> str:
        raw = f"{self.shortcode}{self.passkey}{timestamp}"
        return base64.b64encode(raw.encode()).decode()

    def stk_push(self, phone_number: str, amount: int, plan_type: str) -> Dict[str, Any]:
        """Send the payment prompt to the customer's phone; returns the accepted response."""
        access_token = self.get_access_token()
        timestamp = self.timestamp()
        payload = {
            "BusinessShortCode": self.shortcode,
            "Password": self.password(timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": amount,
            "PartyA": phone_number,
            "PartyB": self.shortcode,
            "PhoneNumber": phone_number,
            "CallBackURL": self.callback_url,
            "AccountReference": f"HappyLearn-{plan_type}",
            "TransactionDesc": f"HappyLearn {plan_type} subscription",
        }
        logger.info(f"Sending STK push: phone={phone_number}, amount={amount}, plan={plan_type}")
        try:
            response = requests.post(
                f"{self.base_url}/mpesa/stkpush/v1/processrequest",
                json=payload,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"STK push request failed: {str(e)}")
            raise PaymentGatewayError("Failed to reach M-Pesa") from e
        logger.info(f"STK push response: status={response.status_code}, body={data}")
        if str(data.get("ResponseCode")) != "0":
            vendor_message = data.get("errorMessage") or data.get("ResponseDescription") or "Failed to initiate payment"
            raise PaymentGatewayError(vendor_message, status_code=response.status_code, vendor_message=vendor_message)
        return data


class PayPalGateway:
    """PayPal Orders v2 client."""

    def __init__(self):
        self.client_id = settings.PAYPAL_CLIENT_ID
        self.secret = settings.PAYPAL_SECRET
        self.base_url = settings.paypal_base_url
        self.timeout = settings.VENDOR_TIMEOUT_SECONDS
        if not (self.client_id and self.secret):
            logger.error("Missing PayPal credentials")
            raise GatewayConfigurationError("PayPal configuration incomplete")

    def get_access_token(self) -> str:
        try:
            response = requests.post(
                f"{self.base_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"PayPal OAuth request failed: {str(e)}")
            raise PaymentGatewayError("Failed to authenticate with PayPal") from e
        if response.status_code != 200:
            logger.error(f"PayPal auth error: {response.status_code}, text={response.text}")
            raise PaymentGatewayError("Failed to authenticate with PayPal", status_code=response.status_code)
        return response.json()["access_token"]

    def create_order(self, user_id: str, plan_type: str, amount_usd: str, return_url: str, cancel_url: str) -> Dict[str, Any]:
        access_token = self.get_access_token()
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": f"{user_id}_{plan_type}_{int(time.time() * 1000)}",
                    "description": f"HappyLearn Premium - {plan_type} plan",
                    "amount": {"currency_code": "USD", "value": amount_usd},
                }
            ],
            "application_context": {
                "brand_name": "HappyLearn",
                "landing_page": "NO_PREFERENCE",
                "user_action": "PAY_NOW",
                "return_url": return_url,
                "cancel_url": cancel_url,
            },
        }
        try:
            response = requests.post(
                f"{self.base_url}/v2/checkout/orders",
                json=body,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"PayPal order request failed: {str(e)}")
            raise PaymentGatewayError("Failed to create PayPal order") from e
        if response.status_code not in (200, 201):
            logger.error(f"PayPal order error: {response.status_code}, text={response.text}")
            raise PaymentGatewayError("Failed to create PayPal order", status_code=response.status_code)
        order = response.json()
        logger.info(f"PayPal order created: {order.get('id')}")
        return order

    def capture_order(self, order_id: str) -> Dict[str, Any]:
        access_token = self.get_access_token()
        try:
            response = requests.post(
                f"{self.base_url}/v2/checkout/orders/{order_id}/capture",
                headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"PayPal capture request failed: {str(e)}")
            raise PaymentGatewayError("Failed to capture PayPal payment") from e
        if response.status_code not in (200, 201):
            logger.error(f"PayPal capture error: {response.status_code}, text={response.text}")
            raise PaymentGatewayError("Failed to capture PayPal payment", status_code=response.status_code)
        capture = response.json()
        logger.info(f"PayPal capture result: {capture.get('status')}")
        return capture

    @staticmethod
    def approval_url(order: Dict[str, Any]) -> Optional[str]:
        for link in order.get("links", []):
            if link.get("rel") == "approve":
                return link.get("href")
        return None

    @staticmethod
    def capture_id(capture: Dict[str, Any]) -> Optional[str]:
        try:
            return capture["purchase_units"][0]["payments"]["captures"][0]["id"]
        except (KeyError, IndexError, TypeError):
            return None
