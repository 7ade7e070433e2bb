"""
GreenPantry API — Restaurant and menu models

Restaurants and their menu items are catalogue data maintained by vendors.
Lists (cuisines, allergens, variants, tags) are stored as JSON documents.
"""
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import JSON, Boolean, Enum, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base, DocumentMixin


class RestaurantStatus(str, PyEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    SUSPENDED = "Suspended"


class Restaurant(DocumentMixin, Base):
    __tablename__ = "restaurants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(100), index=True, nullable=False, default="")
    state: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    cuisine_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    estimated_delivery_time: Mapped[int] = mapped_column(Integer, nullable=False, default=30)  # minutes
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    owner_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    image_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[RestaurantStatus] = mapped_column(
        Enum(RestaurantStatus, name="restaurant_status"),
        nullable=False,
        default=RestaurantStatus.PENDING,
    )


class MenuItem(DocumentMixin, Base):
    __tablename__ = "menu_items"

    restaurant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="Main Course")
    is_vegetarian: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_vegan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_gluten_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_spicy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    spice_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    allergens: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    ingredients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    preparation_time: Mapped[int] = mapped_column(Integer, nullable=False, default=15)  # minutes
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    variants: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
