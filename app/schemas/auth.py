"""
GreenPantry API — Auth and user schemas
"""
from datetime import datetime

from pydantic import EmailStr, Field, model_validator

from app.models.user import UserRole
from app.schemas.common import Address, CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr
    phone_number: str = Field("", max_length=32)
    password: str = Field(..., min_length=6, max_length=72)
    confirm_password: str | None = None
    role: UserRole = UserRole.USER
    address: Address | None = None

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class RefreshRequest(CamelModel):
    refresh_token: str


class UserResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    role: UserRole
    is_email_verified: bool
    address: Address | None = None


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    expires_at: datetime
    user: UserResponse


class UpdateProfileRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    phone_number: str = Field("", max_length=32)
    address: Address | None = None
