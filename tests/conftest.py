"""
GreenPantry API — shared test fixtures

The application runs in-process over httpx.ASGITransport against an
in-memory SQLite database and a fakeredis server.
"""
import os

# Settings are cached on first import, so the environment must be ready first
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "BCRYPT_ROUNDS": "4",
    "METRICS_ENABLED": "false",
    "JWT_SECRET_KEY": "test-secret",
    "ORDER_EVENTS_KEEPALIVE_SECONDS": "0.1",
})

from decimal import Decimal

import fakeredis
import httpx
import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from app.core.redis_client import use_redis
from app.core.security import create_access_token, hash_password
from app.db.database import build_engine, build_session_factory, get_db, init_models
from app.main import app
from app.models.restaurant import MenuItem, Restaurant, RestaurantStatus
from app.models.user import User, UserRole
from app.repositories.order import OrderRepository
from app.repositories.restaurant import MenuItemRepository, RestaurantRepository
from app.services.order_events import OrderEventPublisher
from app.services.order_service import OrderService

PASSWORD = "Secret123!"


# ─── Storage ───────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    use_redis(client)
    yield client
    await client.flushall()
    await client.aclose()
    use_redis(None)


# ─── HTTP client ───────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def client(session_factory, redis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ─── Domain helpers ────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def make_user(db):
    async def _make(role: UserRole = UserRole.USER, email: str | None = None) -> User:
        user = User(
            first_name="Test",
            last_name=role.value,
            email=email or f"{role.value.lower()}-{os.urandom(4).hex()}@greenpantry.example.com",
            phone_number="9999999999",
            hashed_password=hash_password(PASSWORD),
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(
        {"sub": user.id, "email": user.email, "role": user.role.value, "name": user.full_name}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer


@pytest_asyncio.fixture
async def restaurant(db, make_user):
    vendor = await make_user(UserRole.VENDOR)
    restaurant = Restaurant(
        name="Green Bowl",
        description="Salads and curries",
        city="Bengaluru",
        cuisine_types=["Indian", "Healthy"],
        rating=4.5,
        owner_id=vendor.id,
        status=RestaurantStatus.APPROVED,
    )
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)
    return restaurant


@pytest_asyncio.fixture
async def make_menu_item(db, restaurant):
    async def _make(
        price: Decimal = Decimal("100"),
        is_available: bool = True,
        name: str = "Paneer Tikka",
        category: str = "Starters",
    ) -> MenuItem:
        item = MenuItem(
            restaurant_id=restaurant.id,
            name=name,
            price=price,
            category=category,
            is_available=is_available,
        )
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    return _make


@pytest_asyncio.fixture
async def order_service(db, redis):
    return OrderService(
        OrderRepository(db),
        MenuItemRepository(db),
        RestaurantRepository(db),
        OrderEventPublisher(redis),
    )
