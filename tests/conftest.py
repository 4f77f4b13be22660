"""
Pytest fixtures for test database, client, and seed data.

Each test gets its own SQLite database file (through aiosqlite, with
foreign keys switched on so cascades behave like PostgreSQL). HTTP tests
get a fresh session per request, exactly like production; service tests
drive the services on a single session.
"""

import os

# Settings are cached on first import, so this has to come before the app.
os.environ.setdefault("REDIS_ENABLED", "false")

from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from concert_tickets.main import app
from concert_tickets.db.base import Base
from concert_tickets.db.session import build_engine, build_sessionmaker, get_db
from concert_tickets.repositories import SqlAlchemyUnitOfWork
from tests.helpers import create_concert, create_user, get_concert, reserve


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'concerts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def uow(db_session: AsyncSession) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(db_session)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own test-database session."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(client: AsyncClient) -> dict:
    return await create_user(client, "Alice")


@pytest_asyncio.fixture
async def test_admin(client: AsyncClient) -> dict:
    return await create_user(client, "Admin", role="admin")


@pytest_asyncio.fixture
async def test_concert(client: AsyncClient) -> dict:
    """A concert with 5 seats, all available."""
    return await create_concert(client, total_seats=5)


@pytest_asyncio.fixture
async def sold_out_concert(client: AsyncClient) -> dict:
    """A one-seat concert whose only seat is already taken."""
    concert = await create_concert(client, total_seats=1, name="Sold Out Show")
    holder = await create_user(client, "Seat Holder")
    response = await reserve(client, holder["id"], concert["id"])
    assert response.status_code == 201
    return await get_concert(client, concert["id"])
