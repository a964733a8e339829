"""
Test configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database and a deterministic clock.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel

from shopfloor.api.deps import get_clock
from shopfloor.application.services import (
    ExecutionSummaryService,
    LaborService,
    OperationService,
    OrderService,
    QualityService,
)
from shopfloor.core.db import build_engine, build_session_factory, get_session
from shopfloor.domain.shared.clock import DeterministicClock
from shopfloor.main import create_app

START_TIME = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(START_TIME)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def order_service(session, clock) -> OrderService:
    return OrderService(session, clock)


@pytest.fixture
def operation_service(session, clock) -> OperationService:
    return OperationService(session, clock)


@pytest.fixture
def quality_service(session, clock) -> QualityService:
    return QualityService(session, clock)


@pytest.fixture
def labor_service(session, clock) -> LaborService:
    return LaborService(session, clock)


@pytest.fixture
def summary_service(session, clock) -> ExecutionSummaryService:
    return ExecutionSummaryService(session, clock)


@pytest.fixture
def app(session, clock) -> FastAPI:
    """Application bound to the test session and clock."""
    app = create_app(use_lifespan=False)

    async def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
