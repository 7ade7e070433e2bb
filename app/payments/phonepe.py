"""
GreenPantry API — PhonePe gateway

Payloads travel base64-encoded; every call and callback is authenticated by
X-VERIFY = sha256(base64 payload + api path + salt key) + "###" + salt index
(callbacks omit the path).
"""
import base64
import hashlib
import hmac
import json
from decimal import Decimal

from app.core.config import get_settings
from app.core.exceptions import ValidationFailed
from app.payments.base import PaymentGateway, from_minor_units, to_minor_units
from app.schemas.payment import (
    PaymentCharge,
    PaymentProvider,
    PaymentResponse,
    PaymentStatus,
    WebhookEvent,
)

settings = get_settings()

STATUS_MAP = {
    "PAYMENT_SUCCESS": PaymentStatus.COMPLETED,
    "PAYMENT_PENDING": PaymentStatus.PENDING,
    "PAYMENT_ERROR": PaymentStatus.FAILED,
    "PAYMENT_DECLINED": PaymentStatus.FAILED,
    "TIMED_OUT": PaymentStatus.FAILED,
}

PAY_PATH = "/pg/v1/pay"
REFUND_PATH = "/pg/v1/refund"


def x_verify(message: str, salt_key: str, salt_index: str) -> str:
    digest = hashlib.sha256((message + salt_key).encode()).hexdigest()
    return f"{digest}###{salt_index}"


def encode_payload(payload: dict) -> str:
    return base64.b64encode(json.dumps(payload).encode()).decode()


class PhonePeGateway(PaymentGateway):
    provider = PaymentProvider.PHONEPE
    signature_header = "X-Verify"

    def _verify(self, message: str) -> str:
        return x_verify(message, self.config.key_secret, self.config.salt_index)

    async def _post(self, path: str, payload: dict) -> dict:
        encoded = encode_payload(payload)
        return await self.send(
            "POST",
            path,
            json={"request": encoded},
            headers={"X-VERIFY": self._verify(encoded + path)},
        )

    async def create_payment(self, charge: PaymentCharge) -> PaymentResponse:
        self.check_amount(charge)
        data = await self._post(PAY_PATH, {
            "merchantId": self.config.merchant_id,
            "merchantTransactionId": charge.order_id,
            "merchantUserId": charge.customer_email or charge.order_id,
            "amount": to_minor_units(charge.amount),
            "redirectUrl": f"{settings.PAYMENT_REDIRECT_URL}/{charge.order_id}",
            "redirectMode": "REDIRECT",
            "callbackUrl": f"{settings.PAYMENT_CALLBACK_URL}/phonepe",
            "mobileNumber": charge.customer_phone,
            "paymentInstrument": {"type": "PAY_PAGE"},
        })
        info = data.get("data", {})
        redirect = info.get("instrumentResponse", {}).get("redirectInfo", {}).get("url")
        return PaymentResponse(
            payment_id=charge.order_id,
            order_id=charge.order_id,
            provider=self.provider,
            status=PaymentStatus.PENDING,
            amount=charge.amount,
            currency=charge.currency,
            provider_transaction_id=info.get("merchantTransactionId", charge.order_id),
            payment_url=redirect,
        )

    async def get_payment_status(self, payment_id: str) -> PaymentResponse:
        path = f"/pg/v1/status/{self.config.merchant_id}/{payment_id}"
        data = await self.send(
            "GET",
            path,
            headers={
                "X-VERIFY": self._verify(path),
                "X-MERCHANT-ID": self.config.merchant_id,
            },
        )
        info = data.get("data", {})
        return PaymentResponse(
            payment_id=payment_id,
            order_id=info.get("merchantTransactionId", payment_id),
            provider=self.provider,
            status=STATUS_MAP.get(data.get("code", ""), PaymentStatus.PENDING),
            amount=from_minor_units(info.get("amount", 0)),
            currency="INR",
            provider_transaction_id=info.get("transactionId", ""),
        )

    async def refund_payment(self, payment_id: str, amount: Decimal, reason: str) -> PaymentResponse:
        refund_txn = f"REFUND-{payment_id}"
        data = await self._post(REFUND_PATH, {
            "merchantId": self.config.merchant_id,
            "merchantTransactionId": refund_txn,
            "originalTransactionId": payment_id,
            "amount": to_minor_units(amount),
            "callbackUrl": f"{settings.PAYMENT_CALLBACK_URL}/phonepe",
        })
        info = data.get("data", {})
        return PaymentResponse(
            payment_id=payment_id,
            order_id=payment_id,
            provider=self.provider,
            status=PaymentStatus.REFUNDED,
            amount=amount,
            currency="INR",
            provider_transaction_id=info.get("transactionId", ""),
            refund_id=info.get("merchantTransactionId", refund_txn),
            refund_amount=from_minor_units(info.get("amount", to_minor_units(amount))),
            provider_metadata={"reason": reason} if reason else None,
        )

    def verify_webhook(self, signature: str, payload: bytes) -> bool:
        if not signature or not self.config.key_secret:
            return False
        try:
            encoded = json.loads(payload)["response"]
        except (ValueError, KeyError, TypeError):
            return False
        return hmac.compare_digest(self._verify(encoded), signature)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        try:
            decoded = json.loads(base64.b64decode(json.loads(payload)["response"]))
            info = decoded["data"]
            return WebhookEvent(
                order_id=info["merchantTransactionId"],
                payment_id=info.get("transactionId") or info["merchantTransactionId"],
                status=STATUS_MAP.get(decoded.get("code", ""), PaymentStatus.PENDING),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise ValidationFailed(f"Malformed PhonePe webhook: {exc}")
