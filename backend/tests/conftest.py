"""Pytest fixtures for Krishi Kendra backend tests."""

import os
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Use SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("SHOP_ID", "3f2a9c1e-7b4d-4c8a-a5e6-9d0b1c2e3f4a")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.auth import login_limiter
from app.auth import create_access_token, hash_password
from app.config import get_settings
from app.database import Base, get_db
from app.main import app
from app.models import AdminUser, Category, Offer, Product, Shop
from app.models.shop import default_social_media, default_timings

ADMIN_EMAIL = "admin@krishikendra.in"
ADMIN_PASSWORD = "kisan-seva-123"

# Connections are not shared between event loops
engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def reset_login_limiter():
    login_limiter.reset()
    yield
    login_limiter.reset()


async def override_get_db():
    async with test_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


def utc(days: float = 0) -> datetime:
    """Now (UTC, whole seconds) shifted by *days*."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return now + timedelta(days=days)


@pytest.fixture
def shop_id() -> uuid.UUID:
    return get_settings().shop_uuid


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def db():
    async with test_session() as session:
        yield session


@pytest_asyncio.fixture
async def sample_shop(db: AsyncSession, shop_id: uuid.UUID) -> Shop:
    shop = Shop(
        id=shop_id,
        shop_name="भालावत कृषि केंद्र",
        shop_name_english="Bhalawat Krishi Kendra",
        owner_name="रमेश भालावत",
        owner_name_english="Ramesh Bhalawat",
        address="मुख्य बाजार, नीमच",
        address_english="Main Market, Neemuch",
        phone="+91 98765 43210",
        whatsapp="+91 98765 43210",
        email="shop@krishikendra.in",
        website="",
        description="खाद, बीज और कीटनाशक",
        description_english="Fertilizers, seeds and pesticides",
        timings=default_timings(),
        social_media=default_social_media(),
        is_active=True,
    )
    db.add(shop)
    await db.commit()
    await db.refresh(shop)
    return shop


@pytest_asyncio.fixture
async def sample_category(db: AsyncSession, shop_id: uuid.UUID) -> Category:
    category = Category(
        id=uuid.uuid4(),
        shop_id=shop_id,
        name="खाद",
        name_english="Fertilizers",
        slug="fertilizers",
        description="Chemical and organic fertilizers",
        icon="🌱",
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


@pytest_asyncio.fixture
async def other_category(db: AsyncSession, shop_id: uuid.UUID) -> Category:
    category = Category(
        id=uuid.uuid4(),
        shop_id=shop_id,
        name="बीज",
        name_english="Seeds",
        slug="seeds",
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


@pytest_asyncio.fixture
async def sample_product(db: AsyncSession, shop_id: uuid.UUID, sample_category: Category) -> Product:
    product = Product(
        id=uuid.uuid4(),
        shop_id=shop_id,
        category_id=sample_category.id,
        name="यूरिया 45 किलो",
        name_english="Urea 45kg",
        price=Decimal("200.00"),
        original_price=Decimal("250.00"),
        unit="bag",
        description="Nitrogen fertilizer for all crops",
        benefits=["Fast green growth"],
        precautions=["Keep away from children"],
        images=["https://cdn.krishikendra.in/urea.jpg"],
        in_stock=True,
        stock_quantity=40,
        featured=True,
        views=3,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


@pytest_asyncio.fixture
async def other_product(db: AsyncSession, shop_id: uuid.UUID, other_category: Category) -> Product:
    product = Product(
        id=uuid.uuid4(),
        shop_id=shop_id,
        category_id=other_category.id,
        name="सोयाबीन बीज",
        name_english="Soybean Seeds",
        price=Decimal("1000.00"),
        unit="bag",
        in_stock=True,
        stock_quantity=4,
        featured=False,
        views=10,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


@pytest_asyncio.fixture
async def sample_offer(db: AsyncSession, shop_id: uuid.UUID, sample_product: Product) -> Offer:
    offer = Offer(
        id=uuid.uuid4(),
        shop_id=shop_id,
        title="Kharif Sale",
        description="25% off on urea",
        discount_type="percentage",
        discount_value=Decimal("25"),
        minimum_order_amount=Decimal("0"),
        applicable_to_all=False,
        is_active=True,
        start_date=utc(-1),
        end_date=utc(6),
        used_count=0,
        products=[sample_product],
    )
    db.add(offer)
    await db.commit()
    await db.refresh(offer)
    return offer


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession, shop_id: uuid.UUID) -> AdminUser:
    user = AdminUser(
        id=uuid.uuid4(),
        shop_id=shop_id,
        name="Ramesh",
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        role="admin",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def auth_headers(admin_user: AdminUser) -> dict[str, str]:
    token = create_access_token(str(admin_user.id), admin_user.email)
    return {"Authorization": f"Bearer {token}"}
