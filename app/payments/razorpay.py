"""
GreenPantry API — Razorpay gateway

Orders API with HTTP basic auth (key id / key secret). Webhooks are signed
with X-Razorpay-Signature = hex HMAC-SHA256(raw body, webhook secret).
"""
import hashlib
import hmac
import json
from decimal import Decimal

import httpx

from app.core.exceptions import ValidationFailed
from app.payments.base import PaymentGateway, from_minor_units, to_minor_units
from app.schemas.payment import (
    PaymentCharge,
    PaymentProvider,
    PaymentResponse,
    PaymentStatus,
    WebhookEvent,
)

STATUS_MAP = {
    "created": PaymentStatus.PENDING,
    "authorized": PaymentStatus.PROCESSING,
    "captured": PaymentStatus.COMPLETED,
    "failed": PaymentStatus.FAILED,
    "refunded": PaymentStatus.REFUNDED,
}


class RazorpayGateway(PaymentGateway):
    provider = PaymentProvider.RAZORPAY
    signature_header = "X-Razorpay-Signature"

    @property
    def auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.config.key_id, self.config.key_secret)

    async def create_payment(self, charge: PaymentCharge) -> PaymentResponse:
        self.check_amount(charge)
        data = await self.send(
            "POST",
            "/v1/orders",
            auth=self.auth,
            json={
                "amount": to_minor_units(charge.amount),
                "currency": charge.currency,
                "receipt": charge.order_number,
                "notes": {"order_id": charge.order_id, **(charge.metadata or {})},
            },
        )
        return PaymentResponse(
            payment_id=data["id"],
            order_id=charge.order_id,
            provider=self.provider,
            status=STATUS_MAP.get(data.get("status", "created"), PaymentStatus.PENDING),
            amount=charge.amount,
            currency=charge.currency,
            provider_transaction_id=data["id"],
            provider_metadata={"key_id": self.config.key_id, "receipt": charge.order_number},
        )

    async def get_payment_status(self, payment_id: str) -> PaymentResponse:
        data = await self.send("GET", f"/v1/payments/{payment_id}", auth=self.auth)
        return PaymentResponse(
            payment_id=data["id"],
            order_id=(data.get("notes") or {}).get("order_id", ""),
            provider=self.provider,
            status=STATUS_MAP.get(data.get("status", ""), PaymentStatus.PENDING),
            amount=from_minor_units(data.get("amount", 0)),
            currency=data.get("currency", "INR"),
            provider_transaction_id=data.get("order_id", ""),
        )

    async def refund_payment(self, payment_id: str, amount: Decimal, reason: str) -> PaymentResponse:
        data = await self.send(
            "POST",
            f"/v1/payments/{payment_id}/refund",
            auth=self.auth,
            json={"amount": to_minor_units(amount), "notes": {"reason": reason}},
        )
        return PaymentResponse(
            payment_id=payment_id,
            order_id=(data.get("notes") or {}).get("order_id", ""),
            provider=self.provider,
            status=PaymentStatus.REFUNDED,
            amount=amount,
            currency=data.get("currency", "INR"),
            refund_id=data["id"],
            refund_amount=from_minor_units(data.get("amount", to_minor_units(amount))),
        )

    def verify_webhook(self, signature: str, payload: bytes) -> bool:
        if not signature or not self.config.webhook_secret:
            return False
        expected = hmac.new(
            self.config.webhook_secret.encode(), payload, hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        try:
            body = json.loads(payload)
            entity = body["payload"]["payment"]["entity"]
            return WebhookEvent(
                order_id=entity["notes"]["order_id"],
                payment_id=entity["id"],
                status=STATUS_MAP.get(entity.get("status", ""), PaymentStatus.PENDING),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise ValidationFailed(f"Malformed Razorpay webhook: {exc}")
