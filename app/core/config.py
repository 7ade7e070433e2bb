"""
GreenPantry API — Configuration
All settings are read from environment variables (or .env file).
"""
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "greenpantry-api"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # ── JWT ──────────────────────────────────────────────────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "greenpantry"
    JWT_AUDIENCE: str = "greenpantry-clients"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # ── PostgreSQL ────────────────────────────────────────────
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "greenpantry-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "greenpantry"
    POSTGRES_USER: str = "greenpantry"
    POSTGRES_PASSWORD: str = "greenpantry"
    DB_ECHO: bool = False

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Rate Limiting / Idempotency ───────────────────────────
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Orders ────────────────────────────────────────────────
    ORDER_DELIVERY_FEE: Decimal = Decimal("50")
    ORDER_TAX_RATE: Decimal = Decimal("0.18")
    ORDER_NUMBER_PREFIX: str = "GP"
    ORDER_EVENTS_KEEPALIVE_SECONDS: float = 15.0
    SSE_RETRY_MILLISECONDS: int = 3000

    # ── Payments ──────────────────────────────────────────────
    RAZORPAY_ENABLED: bool = False
    RAZORPAY_TEST_MODE: bool = True
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com"
    RAZORPAY_TEST_BASE_URL: str = "https://api.razorpay.com"

    PAYTM_ENABLED: bool = False
    PAYTM_TEST_MODE: bool = True
    PAYTM_MERCHANT_ID: str = ""
    PAYTM_MERCHANT_KEY: str = ""
    PAYTM_WEBHOOK_SECRET: str = ""
    PAYTM_WEBSITE: str = "WEBSTAGING"
    PAYTM_BASE_URL: str = "https://securegw.paytm.in"
    PAYTM_TEST_BASE_URL: str = "https://securegw-stage.paytm.in"

    PHONEPE_ENABLED: bool = False
    PHONEPE_TEST_MODE: bool = True
    PHONEPE_MERCHANT_ID: str = ""
    PHONEPE_SALT_KEY: str = ""
    PHONEPE_SALT_INDEX: str = "1"
    PHONEPE_BASE_URL: str = "https://api.phonepe.com/apis/hermes"
    PHONEPE_TEST_BASE_URL: str = "https://api-preprod.phonepe.com/apis/pg-sandbox"

    PAYMENT_CALLBACK_URL: str = "http://localhost:8000/api/payment/webhook"
    PAYMENT_REDIRECT_URL: str = "http://localhost:3000/orders"
    PAYMENT_QR_EXPIRY_MINUTES: int = 15
    PAYMENT_MIN_AMOUNT: Decimal = Decimal("1")
    PAYMENT_MAX_AMOUNT: Decimal = Decimal("100000")
    PAYMENT_SUPPORTED_CURRENCIES: list[str] = ["INR"]
    UPI_MERCHANT_VPA: str = "greenpantry@upi"
    UPI_MERCHANT_NAME: str = "GreenPantry"

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0
    HTTP_TIMEOUT_SECONDS: float = 10.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
