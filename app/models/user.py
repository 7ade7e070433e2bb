"""
GreenPantry API — User model
"""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import JSON, Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base, DocumentMixin, UTCDateTime


class UserRole(str, PyEnum):
    USER = "User"
    VENDOR = "Vendor"
    ADMIN = "Admin"
    DELIVERY = "Delivery"


class User(DocumentMixin, Base):
    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"), default=UserRole.USER, nullable=False
    )
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # jti of the one refresh token currently honoured; rotated on refresh, cleared on logout
    refresh_token_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User email={self.email} role={self.role}>"
