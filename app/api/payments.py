"""
GreenPantry API — Payments API

Charges are always taken for the stored order total, never for an amount
supplied by the client. Gateway webhooks are unauthenticated (public in
JWTAuthMiddleware) and trusted only after their signature verifies.
"""
import logging

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user, get_order_service, require
from app.core.exceptions import NotFound, ValidationFailed
from app.core.policy import authorize
from app.core.security import CurrentUser
from app.models.order import Order
from app.payments.factory import PaymentFactory, get_payment_factory
from app.schemas.common import MessageResponse
from app.schemas.payment import (
    CreatePaymentRequest,
    PaymentCharge,
    PaymentConfigurationResponse,
    PaymentProvider,
    PaymentResponse,
    RefundRequest,
    UPIQRRequest,
)
from app.services.order_service import OrderService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payment", tags=["payments"])

WEBHOOK_PROVIDERS = {provider.value.lower(): provider for provider in PaymentProvider}


def _charge(order: Order, payload: CreatePaymentRequest | UPIQRRequest) -> PaymentCharge:
    return PaymentCharge(
        order_id=order.id,
        order_number=order.order_number,
        amount=order.total,
        currency=payload.currency,
        customer_name=payload.customer_name,
        customer_email=getattr(payload, "customer_email", ""),
        customer_phone=payload.customer_phone,
        description=payload.description or f"GreenPantry order {order.order_number}",
        metadata=getattr(payload, "metadata", None),
    )


async def _payable_order(order_id: str, user: CurrentUser, orders: OrderService) -> Order:
    order = await orders.get_by_id(order_id)
    authorize("payment:create", user, owner_id=order.user_id)
    return order


@router.post("/create", response_model=PaymentResponse)
async def create_payment(
    payload: CreatePaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    gateway = factory.get(payload.provider)
    order = await _payable_order(payload.order_id, user, orders)

    payment = await gateway.create_payment(_charge(order, payload))
    await orders.apply_payment_result(
        order.id, payment.payment_id, payment.status, payload.provider.value
    )
    return payment


@router.post("/upi-qr", response_model=PaymentResponse)
async def generate_upi_qr(
    payload: UPIQRRequest,
    user: CurrentUser = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    gateway = factory.get(payload.provider)
    order = await _payable_order(payload.order_id, user, orders)
    return await gateway.generate_upi_qr(_charge(order, payload), payload.expiry_minutes)


@router.get("/status/{payment_id}", response_model=PaymentResponse)
async def get_payment_status(
    payment_id: str,
    provider: PaymentProvider,
    user: CurrentUser = Depends(require("payment:manage")),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    return await factory.get(provider).get_payment_status(payment_id)


@router.post("/refund", response_model=PaymentResponse)
async def refund_payment(
    payload: RefundRequest,
    user: CurrentUser = Depends(require("payment:refund")),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    logger.info(
        "Refund of %s requested on %s payment %s",
        payload.amount, payload.provider.value, payload.payment_id,
    )
    return await factory.get(payload.provider).refund_payment(
        payload.payment_id, payload.amount, payload.reason
    )


@router.get("/providers", response_model=list[PaymentProvider])
async def get_enabled_providers(
    user: CurrentUser = Depends(require("payment:manage")),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    return factory.enabled()


@router.get("/config/{provider}", response_model=PaymentConfigurationResponse)
async def get_payment_configuration(
    provider: PaymentProvider,
    user: CurrentUser = Depends(require("payment:manage")),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    return factory.gateway(provider).configuration()


@router.post("/webhook/{provider_name}", response_model=MessageResponse)
async def payment_webhook(
    provider_name: str,
    request: Request,
    orders: OrderService = Depends(get_order_service),
    factory: PaymentFactory = Depends(get_payment_factory),
):
    provider = WEBHOOK_PROVIDERS.get(provider_name.lower())
    if provider is None:
        raise NotFound(f"Unknown payment provider {provider_name}")

    gateway = factory.get(provider)
    body = await request.body()
    signature = request.headers.get(gateway.signature_header, "")
    if not gateway.verify_webhook(signature, body):
        logger.warning("Rejected %s webhook with invalid signature", provider.value)
        raise ValidationFailed("Invalid webhook signature")

    event = gateway.parse_webhook(body)
    await orders.apply_payment_result(event.order_id, event.payment_id, event.status, provider.value)
    return MessageResponse(message="Webhook processed")
