"""
API Dependencies

Dependency injection for FastAPI routes: one async session per request, the
clock, and the execution services built on them.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shopfloor.application.services import (
    ExecutionSummaryService,
    LaborService,
    OperationService,
    OrderService,
    QualityService,
)
from shopfloor.core.db import get_session
from shopfloor.domain.shared.clock import Clock, SystemClock

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


SessionDep = Annotated[AsyncSession, Depends(get_session)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_order_service(session: SessionDep, clock: ClockDep) -> OrderService:
    return OrderService(session, clock)


def get_operation_service(session: SessionDep, clock: ClockDep) -> OperationService:
    return OperationService(session, clock)


def get_quality_service(session: SessionDep, clock: ClockDep) -> QualityService:
    return QualityService(session, clock)


def get_labor_service(session: SessionDep, clock: ClockDep) -> LaborService:
    return LaborService(session, clock)


def get_summary_service(
    session: SessionDep, clock: ClockDep
) -> ExecutionSummaryService:
    return ExecutionSummaryService(session, clock)


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
OperationServiceDep = Annotated[OperationService, Depends(get_operation_service)]
QualityServiceDep = Annotated[QualityService, Depends(get_quality_service)]
LaborServiceDep = Annotated[LaborService, Depends(get_labor_service)]
SummaryServiceDep = Annotated[ExecutionSummaryService, Depends(get_summary_service)]
