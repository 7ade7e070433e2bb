"""
GreenPantry API — Paytm gateway

Requests carry a head.signature computed over the JSON body with the
merchant key; webhooks carry X-Paytm-Signature = base64 HMAC-SHA256 of the
raw body with the webhook secret.
"""
import base64
import hashlib
import hmac
import json
from decimal import Decimal

from app.core.config import get_settings
from app.core.exceptions import ValidationFailed
from app.payments.base import PaymentGateway
from app.schemas.payment import (
    PaymentCharge,
    PaymentProvider,
    PaymentResponse,
    PaymentStatus,
    WebhookEvent,
)

settings = get_settings()

STATUS_MAP = {
    "TXN_SUCCESS": PaymentStatus.COMPLETED,
    "PENDING": PaymentStatus.PENDING,
    "TXN_FAILURE": PaymentStatus.FAILED,
}


def sign(body: dict | bytes, key: str) -> str:
    raw = body if isinstance(body, bytes) else json.dumps(body, separators=(",", ":")).encode()
    return base64.b64encode(hmac.new(key.encode(), raw, hashlib.sha256).digest()).decode()


class PaytmGateway(PaymentGateway):
    provider = PaymentProvider.PAYTM
    signature_header = "X-Paytm-Signature"

    def _signed(self, body: dict) -> dict:
        return {"body": body, "head": {"signature": sign(body, self.config.key_secret)}}

    async def create_payment(self, charge: PaymentCharge) -> PaymentResponse:
        self.check_amount(charge)
        mid = self.config.merchant_id
        body = {
            "requestType": "Payment",
            "mid": mid,
            "websiteName": settings.PAYTM_WEBSITE,
            "orderId": charge.order_id,
            "callbackUrl": f"{settings.PAYMENT_CALLBACK_URL}/paytm",
            "txnAmount": {"value": f"{charge.amount:.2f}", "currency": charge.currency},
            "userInfo": {"custId": charge.customer_email or charge.order_id},
        }
        data = await self.send(
            "POST",
            "/theia/api/v1/initiateTransaction",
            params={"mid": mid, "orderId": charge.order_id},
            json=self._signed(body),
        )
        txn_token = data.get("body", {}).get("txnToken", "")
        return PaymentResponse(
            payment_id=charge.order_id,
            order_id=charge.order_id,
            provider=self.provider,
            status=PaymentStatus.PENDING,
            amount=charge.amount,
            currency=charge.currency,
            provider_transaction_id=txn_token,
            payment_url=(
                f"{self.base_url}/theia/api/v1/showPaymentPage?mid={mid}&orderId={charge.order_id}"
            ),
            provider_metadata={"txn_token": txn_token, "mid": mid},
        )

    async def get_payment_status(self, payment_id: str) -> PaymentResponse:
        data = await self.send(
            "POST",
            "/v3/order/status",
            json=self._signed({"mid": self.config.merchant_id, "orderId": payment_id}),
        )
        body = data.get("body", {})
        result = body.get("resultInfo", {})
        return PaymentResponse(
            payment_id=payment_id,
            order_id=body.get("orderId", payment_id),
            provider=self.provider,
            status=STATUS_MAP.get(result.get("resultStatus", ""), PaymentStatus.PENDING),
            amount=Decimal(body.get("txnAmount", "0")),
            currency="INR",
            provider_transaction_id=body.get("txnId", ""),
        )

    async def refund_payment(self, payment_id: str, amount: Decimal, reason: str) -> PaymentResponse:
        status = await self.get_payment_status(payment_id)
        data = await self.send(
            "POST",
            "/refund/apply",
            json=self._signed({
                "mid": self.config.merchant_id,
                "txnType": "REFUND",
                "orderId": payment_id,
                "txnId": status.provider_transaction_id,
                "refId": f"REFUND-{payment_id}",
                "refundAmount": f"{amount:.2f}",
                "comments": reason,
            }),
        )
        body = data.get("body", {})
        return PaymentResponse(
            payment_id=payment_id,
            order_id=payment_id,
            provider=self.provider,
            status=PaymentStatus.REFUNDED,
            amount=amount,
            currency="INR",
            provider_transaction_id=status.provider_transaction_id,
            refund_id=body.get("refundId", ""),
            refund_amount=Decimal(body.get("refundAmount", f"{amount:.2f}")),
        )

    def verify_webhook(self, signature: str, payload: bytes) -> bool:
        if not signature or not self.config.webhook_secret:
            return False
        return hmac.compare_digest(sign(payload, self.config.webhook_secret), signature)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        try:
            body = json.loads(payload)
            return WebhookEvent(
                order_id=body["ORDERID"],
                payment_id=body.get("TXNID") or body["ORDERID"],
                status=STATUS_MAP.get(body.get("STATUS", ""), PaymentStatus.PENDING),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise ValidationFailed(f"Malformed Paytm webhook: {exc}")
