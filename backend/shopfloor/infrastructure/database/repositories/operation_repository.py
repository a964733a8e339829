"""
Order operation repository implementation.
"""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from shopfloor.domain.shared.exceptions import DatabaseError

from ..models import OrderOperation, RoutingStep
from .base import BaseRepository


class OperationRepository(BaseRepository[OrderOperation, RoutingStep]):
    """Repository for the operations of manufacturing orders."""

    @property
    def entity_class(self) -> type[OrderOperation]:
        return OrderOperation

    async def find_by_order_id(self, order_id: UUID) -> list[OrderOperation]:
        """Operations of an order by sequence, ties broken by creation time."""
        return await self._find_where(
            OrderOperation.manufacturing_order_id == order_id,
            order_by=(OrderOperation.sequence, OrderOperation.created_at),
        )

    async def sequences_in_use(self, order_id: UUID) -> set[int]:
        """
        Sequence numbers held by an order's operations.

        Soft-deleted operations keep their sequence reserved, matching the
        unique constraint on ``(manufacturing_order_id, sequence)``.

        Raises:
            DatabaseError: If database operation fails
        """
        statement = select(OrderOperation.sequence).where(
            OrderOperation.manufacturing_order_id == order_id
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error reading sequences: {e}") from e
        return set(result.scalars().all())
