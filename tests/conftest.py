"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-catalog-suite-0123456789"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import itertools
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import catalog.models  # noqa: F401
from catalog.core.security import create_access_token
from catalog.core.slug import slugify
from catalog.database import Base, get_db, get_session_factory
from catalog.models.attributes import SizeCategory
from catalog.models.product import Product, ProductStatus, ProductVisibility
from catalog.models.user import User, UserRole
from catalog.services.attribute_service import attribute_service
from catalog.services.category_service import category_service
from catalog.services.dimensions import Dimension
from catalog.services.filter_query_builder import FilterDefaults


@pytest.fixture
async def engine(tmp_path):
    """File-backed database so concurrent facet sessions see the same data"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def defaults():
    return FilterDefaults()


@pytest.fixture
async def catalog(db):
    """
    Small catalog:
    clothing > jackets, shoes; Red/Blue/Green active colors, Black inactive;
    Casual style scoped to shoes, Formal unscoped.
    """
    clothing = await category_service.create(db, {"name": "Clothing"})
    jackets = await category_service.create(db, {"name": "Jackets", "parent_id": clothing.id})
    shoes = await category_service.create(db, {"name": "Shoes"})

    red = await attribute_service.create(
        db, Dimension.COLORS, {"name": "Red", "hex_code": "#FF0000", "sort_order": 1}
    )
    blue = await attribute_service.create(
        db, Dimension.COLORS, {"name": "Blue", "hex_code": "#0000FF", "sort_order": 2}
    )
    green = await attribute_service.create(
        db, Dimension.COLORS, {"name": "Green", "hex_code": "#00FF00", "sort_order": 3}
    )
    black = await attribute_service.create(
        db, Dimension.COLORS, {"name": "Black", "hex_code": "#000000", "is_active": False}
    )
    medium = await attribute_service.create(
        db, Dimension.SIZES, {"name": "M", "size_category": SizeCategory.CLOTHING}
    )
    cotton = await attribute_service.create(db, Dimension.MATERIALS, {"name": "Cotton"})
    wool = await attribute_service.create(db, Dimension.MATERIALS, {"name": "Wool"})
    silk = await attribute_service.create(db, Dimension.MATERIALS, {"name": "Silk"})
    linen = await attribute_service.create(db, Dimension.MATERIALS, {"name": "Linen"})
    acme = await attribute_service.create(db, Dimension.BRANDS, {"name": "Acme"})
    globex = await attribute_service.create(db, Dimension.BRANDS, {"name": "Globex"})
    casual = await attribute_service.create(
        db, Dimension.STYLES, {"name": "Casual", "applicable_categories": [shoes.id]}
    )
    formal = await attribute_service.create(db, Dimension.STYLES, {"name": "Formal"})

    return SimpleNamespace(
        clothing=clothing,
        jackets=jackets,
        shoes=shoes,
        red=red,
        blue=blue,
        green=green,
        black=black,
        medium=medium,
        cotton=cotton,
        wool=wool,
        silk=silk,
        linen=linen,
        acme=acme,
        globex=globex,
        casual=casual,
        formal=formal,
    )


@pytest.fixture
def make_product(db, catalog):
    """Insert products directly, bypassing write-time reference validation"""
    counter = itertools.count(1)

    async def _make(**fields):
        n = next(counter)
        material_ids = fields.pop("material_ids", [])
        occasion_ids = fields.pop("occasion_ids", [])
        tags = fields.pop("tags", [])
        values = {
            "name": f"Product {n}",
            "sku": f"SKU-{n:04d}",
            "category_id": catalog.jackets.id,
            "base_price": 50,
            "status": ProductStatus.PUBLISHED,
            "visibility": ProductVisibility.PUBLIC,
        }
        values.update(fields)
        values.setdefault("slug", f"{slugify(values['name'])}-{n}")

        product = Product(**values)
        product.material_ids = material_ids
        product.occasion_ids = occasion_ids
        product.tags = tags
        db.add(product)
        await db.commit()
        return product

    return _make


@pytest.fixture
async def admin_user(db):
    user = User(email="admin@example.com", name="Admin", role=UserRole.ADMIN)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def customer_user(db):
    user = User(email="customer@example.com", name="Customer", role=UserRole.CUSTOMER)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token({"user_id": admin_user.id, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(customer_user):
    token = create_access_token({"user_id": customer_user.id, "role": "customer"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app, bound to the per-test database"""
    from catalog.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
