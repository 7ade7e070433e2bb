"""
GreenPantry API — Authentication service

Registration and login both go through passlib: the stored value is a bcrypt
hash and login verifies the submitted password against it, never comparing
raw strings. Each user holds at most one live refresh token (by jti), which
is rotated on refresh and cleared on logout.
"""
import logging
import uuid

from jose import JWTError

from app.core.config import get_settings
from app.core.exceptions import DuplicateEmail, NotAuthenticated, ValidationFailed
from app.core.security import (
    access_token_expiry,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    refresh_token_expiry,
    verify_password,
)
from app.db.database import utcnow
from app.models.user import User, UserRole
from app.repositories.user import UserRepository
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse

settings = get_settings()
logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = frozenset({UserRole.USER, UserRole.VENDOR, UserRole.DELIVERY})


class AuthService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def register(self, request: RegisterRequest) -> AuthResponse:
        logger.info("Registering new user with email: %s", request.email)

        if request.role not in SELF_SERVICE_ROLES:
            raise ValidationFailed(f"Role {request.role.value} cannot be self-assigned")
        if await self.users.get_by_email(request.email) is not None:
            raise DuplicateEmail()

        user = User(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email.lower(),
            phone_number=request.phone_number,
            hashed_password=hash_password(request.password),
            role=request.role,
            is_email_verified=False,
            address=request.address.model_dump() if request.address else None,
        )
        user = await self.users.create(user)
        response = await self._issue_tokens(user)
        logger.info("User registered successfully with ID: %s", user.id)
        return response

    async def login(self, request: LoginRequest) -> AuthResponse:
        logger.info("User login attempt for email: %s", request.email)

        user = await self.users.get_by_email(request.email)
        if user is None or not verify_password(request.password, user.hashed_password):
            raise NotAuthenticated("Invalid email or password")
        if not user.is_active:
            raise NotAuthenticated("Account is deactivated")

        response = await self._issue_tokens(user)
        logger.info("User logged in successfully with ID: %s", user.id)
        return response

    async def refresh(self, refresh_token: str) -> AuthResponse:
        try:
            claims = decode_token(refresh_token)
            if claims.get("type") != "refresh":
                raise ValueError("Wrong token type")
        except (JWTError, ValueError):
            raise NotAuthenticated("Invalid refresh token")

        user = await self.users.get_by_id(claims["sub"])
        if (
            user is None
            or user.is_deleted
            or not user.is_active
            or user.refresh_token_id != claims.get("jti")
        ):
            raise NotAuthenticated("Invalid refresh token")

        return await self._issue_tokens(user)

    async def logout(self, user_id: str) -> None:
        user = await self.users.get_by_id(user_id)
        if user is None:
            return
        user.refresh_token_id = None
        user.refresh_token_expires_at = None
        user.updated_at = utcnow()
        await self.users.update(user)
        logger.info("User logged out: %s", user_id)

    async def _issue_tokens(self, user: User) -> AuthResponse:
        expires_at = access_token_expiry()
        access_token = create_access_token(
            {
                "sub": user.id,
                "email": user.email,
                "role": user.role.value,
                "name": user.full_name,
            },
            expire=expires_at,
        )
        jti = str(uuid.uuid4())
        refresh_expires_at = refresh_token_expiry()
        refresh_token = create_refresh_token({"sub": user.id}, jti=jti, expire=refresh_expires_at)

        user.refresh_token_id = jti
        user.refresh_token_expires_at = refresh_expires_at
        user.updated_at = utcnow()
        user = await self.users.update(user)

        return AuthResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            expires_at=expires_at,
            user=UserResponse.model_validate(user),
        )
