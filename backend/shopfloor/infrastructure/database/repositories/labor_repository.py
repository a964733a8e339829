"""
Labor assignment repository implementation.
"""

from uuid import UUID

from ..models import LaborAssignment, LaborAssignmentCreate
from .base import BaseRepository


class LaborAssignmentRepository(
    BaseRepository[LaborAssignment, LaborAssignmentCreate]
):
    """Repository for operator labor assignments."""

    @property
    def entity_class(self) -> type[LaborAssignment]:
        return LaborAssignment

    async def find_by_operation_id(self, operation_id: UUID) -> list[LaborAssignment]:
        return await self._find_where(
            LaborAssignment.operation_id == operation_id,
            order_by=LaborAssignment.created_at,
        )

    async def find_by_operation_ids(
        self, operation_ids: list[UUID]
    ) -> list[LaborAssignment]:
        if not operation_ids:
            return []
        return await self._find_where(
            LaborAssignment.operation_id.in_(operation_ids),
            order_by=LaborAssignment.created_at,
        )

    async def find_by_operator_id(self, operator_id: UUID) -> list[LaborAssignment]:
        return await self._find_where(
            LaborAssignment.operator_id == operator_id,
            order_by=LaborAssignment.created_at.desc(),
        )
