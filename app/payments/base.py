"""
GreenPantry API — Payment gateway base class

Each provider speaks its own REST protocol over httpx and verifies its own
webhook signatures; everything else (UPI deep links, amount limits,
public configuration) is shared here.
"""
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from decimal import Decimal
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.exceptions import PaymentGatewayError, ValidationFailed
from app.db.database import utcnow
from app.schemas.payment import (
    PaymentCharge,
    PaymentConfigurationResponse,
    PaymentProvider,
    PaymentResponse,
    PaymentStatus,
    WebhookEvent,
)

settings = get_settings()
logger = logging.getLogger(__name__)


class GatewayConfig(BaseModel):
    provider: PaymentProvider
    enabled: bool = False
    test_mode: bool = True
    merchant_id: str = ""
    key_id: str = ""
    key_secret: str = ""
    webhook_secret: str = ""
    salt_index: str = "1"
    base_url: str
    test_base_url: str


def to_minor_units(amount: Decimal) -> int:
    """Rupees → paise."""
    return int((amount * 100).quantize(Decimal("1")))


def from_minor_units(amount: int | str) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class PaymentGateway(ABC):
    provider: PaymentProvider
    signature_header: str

    def __init__(self, config: GatewayConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.config.test_base_url if self.config.test_mode else self.config.base_url

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
            **kwargs,
        )

    async def send(self, method: str, url: str, auth: httpx.Auth | None = None, **kwargs) -> dict:
        """Issue one gateway call; transport failures and non-2xx replies become PaymentGatewayError."""
        try:
            async with self.client(auth=auth) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise PaymentGatewayError(f"{self.provider.value} did not respond in time.")
        except httpx.RequestError as exc:
            raise PaymentGatewayError(f"{self.provider.value} unreachable: {exc}")

        if not response.is_success:
            logger.warning(
                "%s %s %s returned %s: %s",
                self.provider.value, method, url, response.status_code, response.text[:200],
            )
            raise PaymentGatewayError(
                f"{self.provider.value} rejected the request ({response.status_code})."
            )
        return response.json()

    def check_amount(self, charge: PaymentCharge) -> None:
        if charge.currency not in settings.PAYMENT_SUPPORTED_CURRENCIES:
            raise ValidationFailed(f"Currency {charge.currency} is not supported")
        if not settings.PAYMENT_MIN_AMOUNT <= charge.amount <= settings.PAYMENT_MAX_AMOUNT:
            raise ValidationFailed(
                f"Amount must be between {settings.PAYMENT_MIN_AMOUNT} and {settings.PAYMENT_MAX_AMOUNT}"
            )

    async def generate_upi_qr(self, charge: PaymentCharge, expiry_minutes: int | None = None) -> PaymentResponse:
        """UPI intent link for the order; the client renders it as a QR code."""
        self.check_amount(charge)
        expiry = expiry_minutes or settings.PAYMENT_QR_EXPIRY_MINUTES
        upi_data = "upi://pay?" + urlencode({
            "pa": settings.UPI_MERCHANT_VPA,
            "pn": settings.UPI_MERCHANT_NAME,
            "tr": charge.order_id,
            "tn": charge.description or f"Order {charge.order_number}",
            "am": f"{charge.amount:.2f}",
            "cu": charge.currency,
        })
        return PaymentResponse(
            payment_id=charge.order_id,
            order_id=charge.order_id,
            provider=self.provider,
            status=PaymentStatus.PENDING,
            amount=charge.amount,
            currency=charge.currency,
            upi_qr_data=upi_data,
            qr_expires_at=utcnow() + timedelta(minutes=expiry),
        )

    def configuration(self) -> PaymentConfigurationResponse:
        return PaymentConfigurationResponse(
            provider=self.provider,
            is_enabled=self.config.enabled,
            is_test_mode=self.config.test_mode,
            public_key=self.config.key_id or self.config.merchant_id,
            base_url=self.base_url,
            qr_expiry_minutes=settings.PAYMENT_QR_EXPIRY_MINUTES,
            min_amount=settings.PAYMENT_MIN_AMOUNT,
            max_amount=settings.PAYMENT_MAX_AMOUNT,
            supported_currencies=settings.PAYMENT_SUPPORTED_CURRENCIES,
        )

    @abstractmethod
    async def create_payment(self, charge: PaymentCharge) -> PaymentResponse:
        ...

    @abstractmethod
    async def get_payment_status(self, payment_id: str) -> PaymentResponse:
        ...

    @abstractmethod
    async def refund_payment(self, payment_id: str, amount: Decimal, reason: str) -> PaymentResponse:
        ...

    @abstractmethod
    def verify_webhook(self, signature: str, payload: bytes) -> bool:
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        ...
