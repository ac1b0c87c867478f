import pytest
import sys
import os
from typing import AsyncGenerator

# Add project root to sys.path so we can import from main.py and src
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["COOKIE_SECURE"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport
from main import app
from src.database.core import get_db, Base
from src.auth.service import create_access_token, get_password_hash
from src.entities.admin import Admin, AdminStatus
from src.entities.category import Category, CategoryStatus
from src.entities.product import Product, ProductStatus
from src.rate_limiting import limiter
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

# Setup In-Memory SQLite Database for testing (Async)
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = async_sessionmaker(
    autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
)


@pytest.fixture(autouse=True)
def reset_app_state():
    """
    The category caches live on app.state and would otherwise leak between tests.
    """
    limiter.enabled = False
    app.state.category_cache.invalidate()
    app.state.category_stats_cache.clear()
    yield
    app.state.category_cache.invalidate()
    app.state.category_stats_cache.clear()


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Creates a fresh database session for a test.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def client(db_session):
    """
    Dependency override for database and AsyncClient creation.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Disable lifespan to prevent main.py from trying to use the real DB engine
    # We manage DB tables via the db_session fixture
    from contextlib import asynccontextmanager

    @asynccontextmanager
    async def noop_lifespan(app):
        yield

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = noop_lifespan

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c

    app.router.lifespan_context = original_lifespan
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def test_admin(db_session):
    """
    Creates an active admin and returns it.
    """
    admin = Admin(
        id=uuid.uuid4(),
        email="admin@example.com",
        name="Admin User",
        password_hash=get_password_hash("admin123"),
    )
    db_session.add(admin)
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


@pytest.fixture(scope="function")
async def suspended_admin(db_session):
    admin = Admin(
        id=uuid.uuid4(),
        email="suspended@example.com",
        name="Suspended Admin",
        password_hash=get_password_hash("admin123"),
        status=AdminStatus.SUSPENDED,
    )
    db_session.add(admin)
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


@pytest.fixture(scope="function")
def admin_auth_headers(test_admin):
    """
    Returns valid authorization headers for the test admin.
    """
    access_token = create_access_token(
        email=test_admin.email,
        admin_id=test_admin.id,
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
def suspended_auth_headers(suspended_admin):
    access_token = create_access_token(
        email=suspended_admin.email,
        admin_id=suspended_admin.id,
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
async def sample_categories(db_session):
    """
    Roupas (Active)
        Camisetas (Active)
        Calças (Inactive)
    Acessórios (Inactive)
    """
    now = datetime.now(timezone.utc)
    roupas = Category(
        id=uuid.uuid4(),
        name="Roupas",
        description="Vestuário em geral",
        status=CategoryStatus.ACTIVE,
        created_at=now,
    )
    acessorios = Category(
        id=uuid.uuid4(),
        name="Acessórios",
        description="Bolsas e cintos",
        status=CategoryStatus.INACTIVE,
        created_at=now + timedelta(seconds=1),
    )
    db_session.add_all([roupas, acessorios])
    await db_session.commit()

    camisetas = Category(
        id=uuid.uuid4(),
        name="Camisetas",
        description="Camisetas de algodão",
        status=CategoryStatus.ACTIVE,
        parent_id=roupas.id,
        parent_name=roupas.name,
        created_at=now + timedelta(seconds=2),
    )
    calcas = Category(
        id=uuid.uuid4(),
        name="Calças",
        description="Calças jeans",
        status=CategoryStatus.INACTIVE,
        parent_id=roupas.id,
        parent_name=roupas.name,
        created_at=now + timedelta(seconds=3),
    )
    db_session.add_all([camisetas, calcas])
    await db_session.commit()

    return {
        "roupas": roupas,
        "acessorios": acessorios,
        "camisetas": camisetas,
        "calcas": calcas,
    }


@pytest.fixture(scope="function")
async def sample_products(db_session, sample_categories):
    now = datetime.now(timezone.utc)
    camisetas = sample_categories["camisetas"]
    calcas = sample_categories["calcas"]
    products = {
        "basica": Product(
            id=uuid.uuid4(),
            name="Camiseta Básica",
            description="Camiseta branca lisa",
            price=Decimal("49.90"),
            sub_category_id=camisetas.id,
            status=ProductStatus.ACTIVE,
            tags=["algodão"],
            views=5,
            created_at=now,
        ),
        "estampada": Product(
            id=uuid.uuid4(),
            name="Camiseta Estampada",
            description="Camiseta com estampa",
            price=Decimal("89.90"),
            sub_category_id=camisetas.id,
            status=ProductStatus.ACTIVE,
            tags=[],
            views=20,
            created_at=now + timedelta(seconds=1),
        ),
        "rascunho": Product(
            id=uuid.uuid4(),
            name="Camiseta Rascunho",
            description="Ainda não publicada",
            price=Decimal("10.00"),
            sub_category_id=camisetas.id,
            status=ProductStatus.DRAFT,
            created_at=now + timedelta(seconds=2),
        ),
        "jeans": Product(
            id=uuid.uuid4(),
            name="Calça Jeans",
            description="Calça jeans azul",
            price=Decimal("159.90"),
            sub_category_id=calcas.id,
            status=ProductStatus.ACTIVE,
            created_at=now + timedelta(seconds=3),
        ),
    }
    db_session.add_all(products.values())
    await db_session.commit()
    return products
