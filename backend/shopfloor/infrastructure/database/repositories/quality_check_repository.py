"""
Quality check repository implementation.
"""

from uuid import UUID

from ..models import QualityCheck, QualityCheckTemplate
from .base import BaseRepository


class QualityCheckRepository(BaseRepository[QualityCheck, QualityCheckTemplate]):
    """Repository for quality checks."""

    @property
    def entity_class(self) -> type[QualityCheck]:
        return QualityCheck

    async def find_by_order_id(self, order_id: UUID) -> list[QualityCheck]:
        return await self._find_where(
            QualityCheck.manufacturing_order_id == order_id,
            order_by=(QualityCheck.sequence, QualityCheck.created_at),
        )

    async def find_by_operation_id(self, operation_id: UUID) -> list[QualityCheck]:
        return await self._find_where(
            QualityCheck.operation_id == operation_id,
            order_by=(QualityCheck.sequence, QualityCheck.created_at),
        )
