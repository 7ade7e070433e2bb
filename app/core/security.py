"""
GreenPantry API — JWT and password utilities
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from passlib.context import CryptContext

from app.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)


# ─── Password Hashing ─────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ─── JWT Token Generation ──────────────────────────────────────────────────────

def _encode(payload: dict[str, Any], expire: datetime, token_type: str, jti: str | None = None) -> str:
    payload.update({
        "exp": expire,
        "iat": datetime.now(tz=timezone.utc),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "type": token_type,
        "jti": jti or str(uuid.uuid4()),
    })
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def access_token_expiry() -> datetime:
    return datetime.now(tz=timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_expiry() -> datetime:
    return datetime.now(tz=timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)


def create_access_token(data: dict[str, Any], expire: datetime | None = None) -> str:
    return _encode(data.copy(), expire or access_token_expiry(), "access")


def create_refresh_token(data: dict[str, Any], jti: str, expire: datetime | None = None) -> str:
    return _encode(data.copy(), expire or refresh_token_expiry(), "refresh", jti=jti)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT. Raises JWTError on failure."""
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )


# ─── Authenticated caller ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    role: str
    name: str = ""

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "CurrentUser":
        return cls(
            id=claims["sub"],
            email=claims.get("email", ""),
            role=claims.get("role", ""),
            name=claims.get("name", ""),
        )
