import os

# Point the app at SQLite before it builds its engine; tests never need PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import get_db

TEST_DATABASE_URL = "sqlite+aiosqlite://"

SCHEMA = [
    """
    CREATE TABLE minerals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        price REAL,
        is_active BOOLEAN DEFAULT 1
    )
    """,
    "CREATE VIEW active_minerals AS SELECT id, name FROM minerals WHERE is_active = 1",
]


# Fresh in-memory database per test; StaticPool keeps every session on one connection
@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        for statement in SCHEMA:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine):
    TestingSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with TestingSessionLocal() as session:
        yield session


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Two known rows: Gold (active) and Copper (inactive)
@pytest_asyncio.fixture(scope="function")
async def seeded_minerals(db_session: AsyncSession):
    await db_session.execute(
        text(
            "INSERT INTO minerals (name, price, is_active) VALUES "
            "('Gold', 1800.5, 1), ('Copper', 8.25, 0)"
        )
    )
    await db_session.commit()
    return {"Gold": 1, "Copper": 2}
