"""
Payment gateways: webhook signatures per provider, outbound calls against
httpx.MockTransport, and the webhook → order confirmation flow.
"""
import base64
import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from app.core.exceptions import PaymentGatewayError, ProviderDisabled, ValidationFailed
from app.main import app
from app.models.user import UserRole
from app.payments.base import GatewayConfig
from app.payments.factory import PaymentFactory, get_payment_factory
from app.payments.paytm import PaytmGateway
from app.payments.phonepe import PhonePeGateway
from app.payments.razorpay import RazorpayGateway
from app.schemas.order import CreateOrderRequest
from app.schemas.payment import PaymentCharge, PaymentProvider, PaymentStatus

WEBHOOK_SECRET = "whsec_test"
SALT_KEY = "salt-key"


def configs(**enabled: bool) -> dict[PaymentProvider, GatewayConfig]:
    return {
        PaymentProvider.RAZORPAY: GatewayConfig(
            provider=PaymentProvider.RAZORPAY,
            enabled=enabled.get("razorpay", True),
            key_id="rzp_test_key",
            key_secret="rzp_secret",
            webhook_secret=WEBHOOK_SECRET,
            base_url="https://api.razorpay.com",
            test_base_url="https://api.razorpay.com",
        ),
        PaymentProvider.PAYTM: GatewayConfig(
            provider=PaymentProvider.PAYTM,
            enabled=enabled.get("paytm", True),
            merchant_id="PAYTM_MID",
            key_secret="paytm_key",
            webhook_secret=WEBHOOK_SECRET,
            base_url="https://securegw.paytm.in",
            test_base_url="https://securegw-stage.paytm.in",
        ),
        PaymentProvider.PHONEPE: GatewayConfig(
            provider=PaymentProvider.PHONEPE,
            enabled=enabled.get("phonepe", False),
            merchant_id="PHONEPE_MID",
            key_secret=SALT_KEY,
            salt_index="1",
            base_url="https://api.phonepe.com/apis/hermes",
            test_base_url="https://api-preprod.phonepe.com/apis/pg-sandbox",
        ),
    }


def charge(amount: str = "286.00") -> PaymentCharge:
    return PaymentCharge(order_id="order-1", order_number="GP2024010112345", amount=Decimal(amount))


def razorpay_event(order_id: str, status: str = "captured") -> bytes:
    return json.dumps({
        "event": "payment.captured",
        "payload": {"payment": {"entity": {
            "id": "pay_123", "status": status, "notes": {"order_id": order_id},
        }}},
    }).encode()


def razorpay_signature(body: bytes) -> str:
    return hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()


# ─── Signatures ────────────────────────────────────────────────────────────────
def test_razorpay_signature():
    gateway = RazorpayGateway(configs()[PaymentProvider.RAZORPAY])
    body = razorpay_event("order-1")
    assert gateway.verify_webhook(razorpay_signature(body), body)
    assert not gateway.verify_webhook(razorpay_signature(body), body + b" ")
    assert not gateway.verify_webhook("", body)


def test_paytm_signature():
    gateway = PaytmGateway(configs()[PaymentProvider.PAYTM])
    body = json.dumps({"ORDERID": "order-1", "TXNID": "T1", "STATUS": "TXN_SUCCESS"}).encode()
    signature = base64.b64encode(
        hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).digest()
    ).decode()

    assert gateway.verify_webhook(signature, body)
    assert not gateway.verify_webhook(signature, body.replace(b"TXN_SUCCESS", b"TXN_FAILURE"))

    event = gateway.parse_webhook(body)
    assert event.order_id == "order-1"
    assert event.status is PaymentStatus.COMPLETED


def test_phonepe_signature():
    gateway = PhonePeGateway(configs()[PaymentProvider.PHONEPE])
    encoded = base64.b64encode(json.dumps({
        "code": "PAYMENT_SUCCESS",
        "data": {"merchantTransactionId": "order-1", "transactionId": "T9"},
    }).encode()).decode()
    body = json.dumps({"response": encoded}).encode()
    signature = hashlib.sha256((encoded + SALT_KEY).encode()).hexdigest() + "###1"

    assert gateway.verify_webhook(signature, body)
    assert not gateway.verify_webhook(signature.replace("###1", "###2"), body)
    assert not gateway.verify_webhook(signature, b"not json")

    event = gateway.parse_webhook(body)
    assert event.payment_id == "T9"
    assert event.status is PaymentStatus.COMPLETED


def test_malformed_webhook_rejected():
    gateway = RazorpayGateway(configs()[PaymentProvider.RAZORPAY])
    with pytest.raises(ValidationFailed):
        gateway.parse_webhook(b'{"payload": {}}')


# ─── Factory ───────────────────────────────────────────────────────────────────
def test_factory_only_serves_enabled_providers():
    factory = PaymentFactory(configs(paytm=False))
    assert factory.enabled() == [PaymentProvider.RAZORPAY]
    assert isinstance(factory.get(PaymentProvider.RAZORPAY), RazorpayGateway)
    with pytest.raises(ProviderDisabled):
        factory.get(PaymentProvider.PAYTM)
    # configuration stays visible for disabled providers
    assert factory.gateway(PaymentProvider.PAYTM).configuration().is_enabled is False


# ─── Outbound calls ────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_razorpay_create_payment_posts_order_in_paise():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "order_rzp_1", "status": "created"})

    gateway = RazorpayGateway(
        configs()[PaymentProvider.RAZORPAY], transport=httpx.MockTransport(handler)
    )
    payment = await gateway.create_payment(charge())

    assert payment.payment_id == "order_rzp_1"
    assert payment.status is PaymentStatus.PENDING
    assert seen[0].url.path == "/v1/orders"
    assert seen[0].headers["Authorization"].startswith("Basic ")
    sent = json.loads(seen[0].content)
    assert sent["amount"] == 28600
    assert sent["receipt"] == "GP2024010112345"
    assert sent["notes"]["order_id"] == "order-1"


@pytest.mark.asyncio
async def test_phonepe_create_payment_signs_request():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={
            "success": True,
            "code": "PAYMENT_INITIATED",
            "data": {
                "merchantTransactionId": "order-1",
                "instrumentResponse": {"redirectInfo": {"url": "https://pay.example/redirect"}},
            },
        })

    gateway = PhonePeGateway(
        configs()[PaymentProvider.PHONEPE], transport=httpx.MockTransport(handler)
    )
    payment = await gateway.create_payment(charge())

    assert payment.payment_url == "https://pay.example/redirect"
    encoded = json.loads(seen[0].content)["request"]
    expected = hashlib.sha256((encoded + "/pg/v1/pay" + SALT_KEY).encode()).hexdigest() + "###1"
    assert seen[0].headers["X-VERIFY"] == expected
    assert json.loads(base64.b64decode(encoded))["amount"] == 28600


@pytest.mark.asyncio
async def test_gateway_error_status_raises():
    gateway = PaytmGateway(
        configs()[PaymentProvider.PAYTM],
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )
    with pytest.raises(PaymentGatewayError):
        await gateway.get_payment_status("order-1")


@pytest.mark.asyncio
async def test_amount_limits_enforced():
    gateway = RazorpayGateway(configs()[PaymentProvider.RAZORPAY])
    with pytest.raises(ValidationFailed):
        await gateway.create_payment(charge("0.50"))


@pytest.mark.asyncio
async def test_upi_qr_link():
    gateway = PaytmGateway(configs()[PaymentProvider.PAYTM])
    payment = await gateway.generate_upi_qr(charge(), expiry_minutes=5)
    assert payment.upi_qr_data.startswith("upi://pay?")
    assert "am=286.00" in payment.upi_qr_data
    assert "tr=order-1" in payment.upi_qr_data
    assert payment.qr_expires_at is not None


# ─── API ───────────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def factory():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "order_rzp_1", "status": "created"})

    factory = PaymentFactory(configs(), transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_payment_factory] = lambda: factory
    yield factory
    app.dependency_overrides.pop(get_payment_factory, None)


@pytest_asyncio.fixture
async def pending_order(order_service, make_user, restaurant, make_menu_item):
    customer = await make_user(UserRole.USER)
    item = await make_menu_item(price=Decimal("100"))
    order = await order_service.create(
        CreateOrderRequest(restaurant_id=restaurant.id, items=[{"menuItemId": item.id, "quantity": 2}]),
        customer.id,
    )
    return customer, order


@pytest.mark.asyncio
async def test_create_payment_charges_order_total(client, factory, pending_order, auth_headers):
    customer, order = pending_order
    r = await client.post(
        "/api/payment/create",
        json={"orderId": order.id, "provider": "Razorpay"},
        headers=auth_headers(customer),
    )
    assert r.status_code == 200, r.text
    assert Decimal(r.json()["amount"]) == Decimal("286")
    assert r.json()["paymentId"] == "order_rzp_1"


@pytest.mark.asyncio
async def test_create_payment_for_foreign_order(client, factory, pending_order, make_user, auth_headers):
    _, order = pending_order
    stranger = await make_user(UserRole.USER)
    r = await client.post(
        "/api/payment/create",
        json={"orderId": order.id, "provider": "Razorpay"},
        headers=auth_headers(stranger),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_disabled_provider_is_400(client, factory, pending_order, auth_headers):
    customer, order = pending_order
    r = await client.post(
        "/api/payment/create",
        json={"orderId": order.id, "provider": "PhonePe"},
        headers=auth_headers(customer),
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_webhook_confirms_order(client, db, factory, pending_order):
    _, order = pending_order
    body = razorpay_event(order.id)

    r = await client.post(
        "/api/payment/webhook/razorpay",
        content=body,
        headers={"X-Razorpay-Signature": razorpay_signature(body), "Content-Type": "application/json"},
    )

    assert r.status_code == 200, r.text
    await db.refresh(order)
    assert order.status.value == "Confirmed"
    assert order.payment_status == "Completed"
    assert order.payment_id == "pay_123"
    assert order.status_history[-1]["updated_by"] == "payment:Razorpay"


@pytest.mark.asyncio
async def test_webhook_with_bad_signature_is_400(client, db, factory, pending_order):
    _, order = pending_order
    body = razorpay_event(order.id)

    r = await client.post(
        "/api/payment/webhook/razorpay",
        content=body,
        headers={"X-Razorpay-Signature": "0" * 64},
    )

    assert r.status_code == 400
    await db.refresh(order)
    assert order.status.value == "Pending"
    assert order.payment_status == "Pending"


@pytest.mark.asyncio
async def test_unknown_webhook_provider(client, factory):
    r = await client.post("/api/payment/webhook/stripe", content=b"{}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_config_never_exposes_secrets(client, factory, make_user, auth_headers):
    user = await make_user(UserRole.USER)
    r = await client.get("/api/payment/config/Razorpay", headers=auth_headers(user))
    assert r.status_code == 200
    text = r.text
    assert "rzp_secret" not in text
    assert WEBHOOK_SECRET not in text
    assert r.json()["publicKey"] == "rzp_test_key"


@pytest.mark.asyncio
async def test_providers_lists_enabled(client, factory, make_user, auth_headers):
    user = await make_user(UserRole.USER)
    r = await client.get("/api/payment/providers", headers=auth_headers(user))
    assert r.json() == ["Razorpay", "Paytm"]


@pytest.mark.asyncio
async def test_refund_requires_staff(client, factory, make_user, auth_headers):
    user = await make_user(UserRole.USER)
    r = await client.post(
        "/api/payment/refund",
        json={"paymentId": "pay_123", "amount": "100", "provider": "Razorpay"},
        headers=auth_headers(user),
    )
    assert r.status_code == 403
