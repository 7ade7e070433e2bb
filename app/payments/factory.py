"""
GreenPantry API — Payment gateway factory
"""
from functools import lru_cache

import httpx

from app.core.config import Settings, get_settings
from app.core.exceptions import ProviderDisabled
from app.payments.base import GatewayConfig, PaymentGateway
from app.payments.paytm import PaytmGateway
from app.payments.phonepe import PhonePeGateway
from app.payments.razorpay import RazorpayGateway
from app.schemas.payment import PaymentProvider

GATEWAYS: dict[PaymentProvider, type[PaymentGateway]] = {
    PaymentProvider.RAZORPAY: RazorpayGateway,
    PaymentProvider.PAYTM: PaytmGateway,
    PaymentProvider.PHONEPE: PhonePeGateway,
}


def gateway_configs(settings: Settings) -> dict[PaymentProvider, GatewayConfig]:
    return {
        PaymentProvider.RAZORPAY: GatewayConfig(
            provider=PaymentProvider.RAZORPAY,
            enabled=settings.RAZORPAY_ENABLED,
            test_mode=settings.RAZORPAY_TEST_MODE,
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
            base_url=settings.RAZORPAY_BASE_URL,
            test_base_url=settings.RAZORPAY_TEST_BASE_URL,
        ),
        PaymentProvider.PAYTM: GatewayConfig(
            provider=PaymentProvider.PAYTM,
            enabled=settings.PAYTM_ENABLED,
            test_mode=settings.PAYTM_TEST_MODE,
            merchant_id=settings.PAYTM_MERCHANT_ID,
            key_secret=settings.PAYTM_MERCHANT_KEY,
            webhook_secret=settings.PAYTM_WEBHOOK_SECRET,
            base_url=settings.PAYTM_BASE_URL,
            test_base_url=settings.PAYTM_TEST_BASE_URL,
        ),
        PaymentProvider.PHONEPE: GatewayConfig(
            provider=PaymentProvider.PHONEPE,
            enabled=settings.PHONEPE_ENABLED,
            test_mode=settings.PHONEPE_TEST_MODE,
            merchant_id=settings.PHONEPE_MERCHANT_ID,
            key_secret=settings.PHONEPE_SALT_KEY,
            salt_index=settings.PHONEPE_SALT_INDEX,
            base_url=settings.PHONEPE_BASE_URL,
            test_base_url=settings.PHONEPE_TEST_BASE_URL,
        ),
    }


class PaymentFactory:
    def __init__(
        self,
        configs: dict[PaymentProvider, GatewayConfig],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._gateways = {
            provider: GATEWAYS[provider](config, transport=transport)
            for provider, config in configs.items()
        }

    def is_enabled(self, provider: PaymentProvider) -> bool:
        gateway = self._gateways.get(provider)
        return gateway is not None and gateway.config.enabled

    def enabled(self) -> list[PaymentProvider]:
        return [provider for provider in self._gateways if self.is_enabled(provider)]

    def gateway(self, provider: PaymentProvider) -> PaymentGateway:
        """The provider's gateway whether or not it is enabled."""
        return self._gateways[provider]

    def get(self, provider: PaymentProvider) -> PaymentGateway:
        if not self.is_enabled(provider):
            raise ProviderDisabled(provider.value)
        return self._gateways[provider]


@lru_cache()
def get_payment_factory() -> PaymentFactory:
    return PaymentFactory(gateway_configs(get_settings()))
