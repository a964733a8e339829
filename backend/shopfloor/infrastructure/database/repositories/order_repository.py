"""
Manufacturing order repository implementation.
"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from shopfloor.domain.execution.services.metrics import SECONDS_PER_HOUR
from shopfloor.domain.execution.value_objects.enums import OrderStatus
from shopfloor.domain.execution.value_objects.summaries import OrderStatistics
from shopfloor.domain.shared.clock import ensure_utc
from shopfloor.domain.shared.exceptions import DatabaseError

from ..models import ManufacturingOrder, ManufacturingOrderCreate
from .base import BaseRepository

ORDER_NUMBER_PREFIX = "MO"


class OrderRepository(BaseRepository[ManufacturingOrder, ManufacturingOrderCreate]):
    """Repository for manufacturing orders."""

    @property
    def entity_class(self) -> type[ManufacturingOrder]:
        return ManufacturingOrder

    async def find_by_order_number(self, order_number: str) -> ManufacturingOrder | None:
        rows = await self._find_where(ManufacturingOrder.order_number == order_number)
        return rows[0] if rows else None

    async def next_order_number(self, year: int) -> str:
        """
        Generate the next order number for a year, ``MO-YYYY-NNNNNN``.

        The number follows the highest numeric suffix already used for the
        year, including supplied numbers and soft-deleted orders.

        Raises:
            DatabaseError: If database operation fails
        """
        prefix = f"{ORDER_NUMBER_PREFIX}-{year}-"
        statement = select(ManufacturingOrder.order_number).where(
            ManufacturingOrder.order_number.startswith(prefix)
        )
        try:
            numbers = (await self.session.execute(statement)).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error generating order number: {e}") from e

        suffixes = [
            int(number[len(prefix) :])
            for number in numbers
            if number[len(prefix) :].isdigit()
        ]
        return f"{prefix}{max(suffixes, default=0) + 1:06d}"

    async def get_statistics(self, now: datetime) -> OrderStatistics:
        """
        Summarize active orders.

        Args:
            now: Reference time for the overdue check

        Returns:
            Totals, counts by status, overdue count and mean lead time in hours
            over orders that have both actual dates

        Raises:
            DatabaseError: If database operation fails
        """
        by_status_statement = (
            select(ManufacturingOrder.status, func.count())
            .where(ManufacturingOrder.is_active.is_(True))
            .group_by(ManufacturingOrder.status)
        )
        overdue_statement = select(func.count()).where(
            ManufacturingOrder.is_active.is_(True),
            ManufacturingOrder.planned_end_date < now,
            ManufacturingOrder.status.in_([s for s in OrderStatus if s.is_open]),
        )
        lead_time_statement = select(
            ManufacturingOrder.actual_start_date, ManufacturingOrder.actual_end_date
        ).where(
            ManufacturingOrder.is_active.is_(True),
            ManufacturingOrder.actual_start_date.is_not(None),
            ManufacturingOrder.actual_end_date.is_not(None),
        )

        try:
            status_rows = (await self.session.execute(by_status_statement)).all()
            overdue = (await self.session.execute(overdue_statement)).scalar_one()
            date_rows = (await self.session.execute(lead_time_statement)).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error computing statistics: {e}") from e

        by_status = {status.value: 0 for status in OrderStatus}
        for status, count in status_rows:
            by_status[OrderStatus(status).value] = count

        lead_times = [
            (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_HOUR
            for start, end in date_rows
        ]

        return OrderStatistics(
            total_orders=sum(by_status.values()),
            by_status=by_status,
            overdue_orders=overdue,
            average_lead_time_hours=(
                sum(lead_times) / len(lead_times) if lead_times else None
            ),
        )
