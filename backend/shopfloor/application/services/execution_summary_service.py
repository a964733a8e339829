"""
Progress aggregation for one manufacturing order.

Read-only composition of operation progress, quality summary and labor
summaries. Everything is recomputed from current rows on each call.
"""

from collections import defaultdict
from uuid import UUID

from shopfloor.domain.execution.services.metrics import (
    compute_labor_summary,
    compute_operation_progress,
    compute_quality_summary,
    order_operations,
)
from shopfloor.domain.execution.value_objects.summaries import (
    ExecutionSummary,
    OperationLaborSummary,
)
from shopfloor.infrastructure.database.models import ManufacturingOrderPublic
from shopfloor.infrastructure.database.repositories import (
    LaborAssignmentRepository,
    OperationRepository,
    OrderRepository,
    QualityCheckRepository,
)

from .base_service import ApplicationServiceBase


class ExecutionSummaryService(ApplicationServiceBase):
    """Builds the execution summary of an order without writing anything."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self.orders = OrderRepository(session, self.clock)
        self.operations = OperationRepository(session, self.clock)
        self.checks = QualityCheckRepository(session, self.clock)
        self.assignments = LaborAssignmentRepository(session, self.clock)

    async def get_execution_summary(self, order_id: UUID) -> ExecutionSummary:
        """
        Compose progress, quality and labor for an order.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
        """
        order = await self.orders.get_by_id_required(order_id)
        operations = order_operations(await self.operations.find_by_order_id(order_id))
        checks = await self.checks.find_by_order_id(order_id)
        assignments = await self.assignments.find_by_operation_ids(
            [op.id for op in operations]
        )

        by_operation = defaultdict(list)
        for assignment in assignments:
            by_operation[assignment.operation_id].append(assignment)

        return ExecutionSummary(
            order=ManufacturingOrderPublic.model_validate(order).model_dump(
                mode="json", by_alias=True
            ),
            progress=compute_operation_progress(operations),
            quality=compute_quality_summary(checks),
            labor_by_operation=[
                OperationLaborSummary(
                    operation_id=op.id,
                    sequence=op.sequence,
                    labor=compute_labor_summary(by_operation[op.id]),
                )
                for op in operations
            ],
            labor=compute_labor_summary(assignments),
            generated_at=self.clock.now(),
        )
