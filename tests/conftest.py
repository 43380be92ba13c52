"""
DocScan - Shared Test Fixtures
Provides reusable fixtures for the profile registry, database and API client.
"""

import os
import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport

# Configure test environment BEFORE importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_docscan.db"
os.environ["LEARNING_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DOCUMENT_INTELLIGENCE_ENDPOINT"] = ""
os.environ["SEARCH_ENDPOINT"] = ""

from app.main import create_app
from app.services.document_profiles import ProfileRegistry


APS_TEXT = """Agreement of Purchase and Sale
Property Address: 123 Main Street, Toronto, ON
Purchase Price: $750,000
Closing Date: June 15, 2024
Buyer: John Smith
Seller: Jane Doe
Deposit: $37,500
Buyer Signature: [Signed]
Seller Signature: [Signed]"""


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def registry() -> ProfileRegistry:
    return ProfileRegistry()


@pytest.fixture
def aps_text() -> str:
    """A mostly complete purchase agreement with no irrevocable date."""
    return APS_TEXT


@pytest.fixture
def aps_profile(registry):
    return registry.get("Agreement of Purchase and Sale (APS)")


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def database():
    """Create and seed tables before the test, drop them after."""
    from app.core.database import Base, close_db, get_engine, get_session_factory, init_db

    await init_db(seed=True)

    yield get_session_factory()

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await close_db()

    for db_file in ["test_docscan.db", "test_docscan.db-shm", "test_docscan.db-wal"]:
        if os.path.exists(db_file):
            try:
                os.remove(db_file)
            except PermissionError:
                pass


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def app(database):
    """Fresh application (and fresh in-memory learning log) per test."""
    return create_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
