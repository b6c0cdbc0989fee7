"""
Pytest configuration and fixtures.
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.models import Base, User, UserRole


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


async def _add_user(session: AsyncSession, username: str, role: UserRole) -> User:
    user = User(
        username=username,
        password_hash="not-a-real-hash",
        role=role,
        display_name=username.title(),
        is_active=True,
    )
    session.add(user)
    await session.flush()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session):
    return await _add_user(db_session, "admin", UserRole.ADMIN)


@pytest_asyncio.fixture
async def operator(db_session):
    return await _add_user(db_session, "anna", UserRole.OPERATOR)


@pytest_asyncio.fixture
async def other_operator(db_session):
    return await _add_user(db_session, "bernd", UserRole.OPERATOR)
