"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set required environment variables before importing app modules
os.environ.setdefault('RUNTIME_ENVIRONMENT', 'TEST')
os.environ.setdefault('DB_URL', 'sqlite+aiosqlite:///:memory:')
os.environ.setdefault('REDIS_URL', 'redis://localhost:6379/15')
os.environ.setdefault('STRIPE_SECRET_KEY', 'sk_test_storefront')
os.environ.setdefault('CURRENCY', 'NOK')
os.environ.setdefault('FREE_SHIPPING_THRESHOLD', '500')
os.environ.setdefault('SHIPPING_COST', '79')
os.environ.setdefault('CART_LOGIN_MERGE_POLICY', 'merge')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from models.product import ProductDTO


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite shared by every session)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    # Import and create all tables
    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(test_engine):
    """Drop-in replacement for db.get_db_session bound to the test engine."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    @asynccontextmanager
    async def _get_session():
        async with async_session_maker() as session:
            yield session

    return _get_session


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Catalog Fixtures
# ============================================================================

def make_product(product_id: str = "p-1", price: float = 100.0, **overrides) -> ProductDTO:
    fields = dict(
        id=product_id,
        name=f"Ansiktsserum {product_id}",
        slug=f"ansiktsserum-{product_id}",
        description="Fuktighetsgivende ansiktsserum med hyaluronsyre",
        price=price,
        image=f"https://cdn.example.com/{product_id}.jpg",
        category="hudpleie",
        brand="hudpleie",
    )
    fields.update(overrides)
    return ProductDTO(**fields)


@pytest.fixture
def product_factory():
    return make_product
