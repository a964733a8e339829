"""Async database engine and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from shopfloor.core.config import settings
from shopfloor.core.observability import get_logger

# Table metadata must be registered before create_all
from shopfloor.infrastructure.database import models  # noqa: F401

logger = get_logger(__name__)


def build_engine(database_uri: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine suited to the configured backend."""
    if database_uri.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_uri or database_uri.endswith("://"):
            # A single shared connection keeps the in-memory database alive
            kwargs["poolclass"] = StaticPool
        return create_async_engine(database_uri, echo=echo, **kwargs)

    return create_async_engine(
        database_uri,
        echo=echo,
        pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI, echo=settings.LOG_SQL)
AsyncSessionLocal = build_session_factory(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all execution tables if they do not exist yet."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ensured", url=str(bind.url))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session per request."""
    async with AsyncSessionLocal() as session:
        yield session
