"""
GreenPantry API — Payment schemas
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import Field

from app.schemas.common import CamelModel


class PaymentProvider(str, Enum):
    RAZORPAY = "Razorpay"
    PAYTM = "Paytm"
    PHONEPE = "PhonePe"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class CreatePaymentRequest(CamelModel):
    order_id: str
    provider: PaymentProvider
    currency: str = "INR"
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    description: str = ""
    metadata: dict[str, Any] | None = None


class UPIQRRequest(CamelModel):
    order_id: str
    provider: PaymentProvider
    currency: str = "INR"
    customer_name: str = ""
    customer_phone: str = ""
    description: str = ""
    expiry_minutes: int | None = Field(None, ge=1, le=60)


class RefundRequest(CamelModel):
    payment_id: str
    amount: Decimal = Field(..., gt=0)
    reason: str = ""
    provider: PaymentProvider


class PaymentCharge(CamelModel):
    """What a gateway is asked to collect for one order."""

    order_id: str
    order_number: str
    amount: Decimal
    currency: str = "INR"
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    description: str = ""
    metadata: dict[str, Any] | None = None


class PaymentResponse(CamelModel):
    payment_id: str
    order_id: str
    provider: PaymentProvider
    status: PaymentStatus
    amount: Decimal
    currency: str
    provider_transaction_id: str = ""
    upi_qr_data: str | None = None
    qr_expires_at: datetime | None = None
    payment_url: str | None = None
    provider_metadata: dict[str, Any] | None = None
    refund_id: str | None = None
    refund_amount: Decimal | None = None


class PaymentConfigurationResponse(CamelModel):
    provider: PaymentProvider
    is_enabled: bool
    is_test_mode: bool
    public_key: str = ""
    base_url: str
    qr_expiry_minutes: int
    min_amount: Decimal
    max_amount: Decimal
    supported_currencies: list[str]


class WebhookEvent(CamelModel):
    """Outcome reported by a gateway webhook, reduced to what the order needs."""

    order_id: str
    payment_id: str
    status: PaymentStatus
