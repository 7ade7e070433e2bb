"""
GreenPantry API — Restaurant and menu schemas
"""
from decimal import Decimal

from pydantic import Field

from app.models.restaurant import RestaurantStatus
from app.schemas.common import CamelModel


class RestaurantFilter(CamelModel):
    city: str | None = None
    cuisine_type: str | None = None
    min_rating: float | None = Field(None, ge=0, le=5)
    search_term: str | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)


class RestaurantRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    image_url: str = ""
    city: str = ""
    state: str = ""
    address: str = ""
    postal_code: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    phone_number: str = ""
    email: str = ""
    cuisine_types: list[str] = []
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)
    estimated_delivery_time: int = Field(30, ge=1)
    image_urls: list[str] = []
    # Only honoured for admins; vendors always own what they create
    owner_id: str | None = None


class RestaurantResponse(CamelModel):
    id: str
    name: str
    description: str
    image_url: str
    city: str
    state: str
    address: str
    phone_number: str
    cuisine_types: list[str]
    rating: float
    review_count: int
    delivery_fee: Decimal
    estimated_delivery_time: int
    is_active: bool
    image_urls: list[str]
    status: RestaurantStatus


class RestaurantDetailResponse(RestaurantResponse):
    email: str
    latitude: float
    longitude: float
    postal_code: str
    owner_id: str


class MenuItemVariant(CamelModel):
    name: str
    price_modifier: Decimal = Decimal("0")
    is_default: bool = False


class MenuItemRequest(CamelModel):
    restaurant_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    image_url: str = ""
    category: str = "Main Course"
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_spicy: bool = False
    spice_level: int = Field(0, ge=0, le=5)
    allergens: list[str] = []
    ingredients: list[str] = []
    preparation_time: int = Field(15, ge=0)
    is_available: bool = True
    stock_quantity: int = Field(0, ge=0)
    variants: list[MenuItemVariant] = []
    tags: list[str] = []


class MenuItemResponse(MenuItemRequest):
    id: str


class MenuCategory(CamelModel):
    category: str
    items: list[MenuItemResponse]
