"""
Shared fixtures: a throwaway SQLite database per test, a fast password
hasher, and a TestClient wired to both.
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import NullPool

from main import app
from usermanager.core.security import PasswordHasher, get_password_hasher
from usermanager.database import create_engine_for_url, get_db, init_db
from usermanager.web.api_client import ApiClient, get_api_client

# Minimum bcrypt work factor keeps the suite fast
FAST_ROUNDS = 4


def _test_engine(tmp_path):
    # NullPool: TestClient serves each request on its own event loop
    return create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)


@pytest.fixture
def hasher():
    """Password hasher with the cheapest bcrypt work factor."""
    return PasswordHasher(rounds=FAST_ROUNDS)


@pytest.fixture
async def engine(tmp_path):
    """Async engine on a fresh database file with all tables created."""
    test_engine = _test_engine(tmp_path)
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine):
    """Database session for repository tests."""
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def client(tmp_path, hasher):
    """
    TestClient with the database, hasher and page API client overridden.

    The admin pages reach the REST API in-process through httpx's ASGI
    transport instead of a real socket.
    """
    test_engine = _test_engine(tmp_path)
    asyncio.run(init_db(test_engine))
    TestingSessionLocal = async_sessionmaker(bind=test_engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with TestingSessionLocal() as db:
            yield db

    async def override_get_api_client():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            yield ApiClient(http)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_api_client] = override_get_api_client

    yield TestClient(app)

    app.dependency_overrides.clear()
    asyncio.run(test_engine.dispose())
