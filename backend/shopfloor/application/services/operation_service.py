"""
Order operation lifecycle service.

Operations are created in batch from a routing, advance through their own
status machine, and complete either explicitly or when the reported quantity
reaches the planned quantity.
"""

from collections import Counter
from uuid import UUID

from shopfloor.application.dtos import OperationUpdate
from shopfloor.core.observability import get_logger
from shopfloor.domain.execution.services.metrics import compute_operation_progress
from shopfloor.domain.execution.value_objects.enums import OperationStatus
from shopfloor.domain.execution.value_objects.summaries import OperationProgress
from shopfloor.domain.shared.exceptions import InvalidQuantityError, ValidationError
from shopfloor.infrastructure.database.models import (
    OrderOperation,
    OrderOperationCreate,
    RoutingStep,
)
from shopfloor.infrastructure.database.repositories import (
    OperationRepository,
    OrderRepository,
    Page,
)

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)

ENTITY = "OrderOperation"

REQUIRED_OPERATION_FIELDS = frozenset(
    {"work_center_id", "operation_code", "sequence", "planned_quantity"}
)


class OperationService(ApplicationServiceBase):
    """Application service for order operations."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self.operations = OperationRepository(session, self.clock)
        self.orders = OrderRepository(session, self.clock)

    async def get_operation(self, operation_id: UUID) -> OrderOperation:
        return await self.operations.get_by_id_required(operation_id)

    async def list_operations(self, order_id: UUID) -> list[OrderOperation]:
        await self.orders.get_by_id_required(order_id)
        return await self.operations.find_by_order_id(order_id)

    async def create_from_routing(
        self, order_id: UUID, steps: list[RoutingStep]
    ) -> list[OrderOperation]:
        """
        Create one WAITING operation per routing step.

        Sequences need not be contiguous but must be unique within the order,
        both inside the batch and against every operation the order has held,
        deleted ones included.

        Args:
            order_id: Owning manufacturing order
            steps: Routing steps in any order

        Returns:
            Created operations in sequence order

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
            ValidationError: If the batch is empty or a sequence is reused
        """
        await self.orders.get_by_id_required(order_id)
        if not steps:
            raise ValidationError("steps", 0, "At least one routing step is required")

        counts = Counter(step.sequence for step in steps)
        duplicates = sorted(seq for seq, count in counts.items() if count > 1)
        if duplicates:
            raise ValidationError(
                "sequence",
                ", ".join(map(str, duplicates)),
                "Sequence numbers repeat within the routing",
                "DUPLICATE_SEQUENCE",
            )

        existing = await self.operations.sequences_in_use(order_id)
        clashes = sorted(existing & counts.keys())
        if clashes:
            raise ValidationError(
                "sequence",
                ", ".join(map(str, clashes)),
                "Sequence numbers already used by this order",
                "DUPLICATE_SEQUENCE",
            )

        created = await self.operations.bulk_create(
            [
                {
                    **step.model_dump(),
                    "manufacturing_order_id": order_id,
                    "status": OperationStatus.WAITING,
                    "completed_quantity": 0,
                }
                for step in sorted(steps, key=lambda s: s.sequence)
            ]
        )
        logger.info(
            "Operations created from routing",
            order_id=str(order_id),
            count=len(created),
        )
        return created

    async def create_operation(self, request: OrderOperationCreate) -> OrderOperation:
        """
        Add one WAITING operation to an order.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
            ValidationError: If the sequence is already used by the order
        """
        (operation,) = await self.create_from_routing(
            request.manufacturing_order_id, [request]
        )
        return operation

    async def search_operations(
        self,
        order_id: UUID | None = None,
        work_center_id: UUID | None = None,
        status: OperationStatus | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page:
        return await self.operations.find_many(
            {
                "manufacturing_order_id": order_id,
                "work_center_id": work_center_id,
                "status": status,
            },
            page=page,
            limit=self.page_limit(limit),
            sort_by="sequence",
            descending=False,
        )

    async def update_operation(
        self, operation_id: UUID, request: OperationUpdate
    ) -> OrderOperation:
        """
        Edit the planning fields of an operation.

        Raises:
            EntityNotFoundError: If the operation is missing or soft-deleted
            ValidationError: If a required field is nulled, the new sequence
                is taken, the planned window is inverted, or the planned
                quantity drops below the completed quantity
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        changes = self.edited_fields(request, REQUIRED_OPERATION_FIELDS)
        operation = await self.operations.get_by_id_required(operation_id)

        sequence = changes.get("sequence")
        if sequence is not None and sequence != operation.sequence:
            in_use = await self.operations.sequences_in_use(
                operation.manufacturing_order_id
            )
            if sequence in in_use:
                raise ValidationError(
                    "sequence",
                    sequence,
                    "Sequence number already used by this order",
                    "DUPLICATE_SEQUENCE",
                )

        planned = changes.get("planned_quantity")
        if planned is not None and planned < operation.completed_quantity:
            raise ValidationError(
                "planned_quantity",
                planned,
                f"Must not fall below the completed quantity "
                f"{operation.completed_quantity}",
            )

        self.validate_window(
            "planned_end_time",
            changes.get("planned_start_time", operation.planned_start_time),
            changes.get("planned_end_time", operation.planned_end_time),
        )

        updated = await self.write(
            self.operations, operation_id, changes, request.expected_version
        )
        logger.info(
            "Operation updated",
            operation_id=str(operation_id),
            fields=sorted(changes),
        )
        return updated

    async def delete_operation(self, operation_id: UUID) -> None:
        await self.remove(self.operations, operation_id)

    async def transition_status(
        self,
        operation_id: UUID,
        new_status: OperationStatus | str,
        expected_version: int | None = None,
    ) -> OrderOperation:
        """
        Move an operation along its status machine.

        Start and end times are stamped on first entry to IN_PROGRESS and
        COMPLETED. Completing an operation raises an under-reported
        ``completed_quantity`` to ``planned_quantity``.

        Raises:
            EntityNotFoundError: If the operation is missing or soft-deleted
            InvalidTransitionError: If the edge is not permitted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        target = self.validate_enum(OperationStatus, new_status, "status")
        operation = await self.operations.get_by_id_required(operation_id)
        current = OperationStatus(operation.status)

        self.check_transition(ENTITY, current, target)

        now = self.clock.now()
        changes: dict = {"status": target}
        if target == OperationStatus.IN_PROGRESS and operation.actual_start_time is None:
            changes["actual_start_time"] = now
        if target == OperationStatus.COMPLETED:
            if operation.actual_end_time is None:
                changes["actual_end_time"] = now
            if operation.completed_quantity < operation.planned_quantity:
                changes["completed_quantity"] = operation.planned_quantity

        updated = await self.write(self.operations, operation_id, changes, expected_version)
        self.log_transition(ENTITY, operation_id, current, target)
        return updated

    async def update_quantity(
        self,
        operation_id: UUID,
        completed_quantity: float,
        expected_version: int | None = None,
    ) -> OrderOperation:
        """
        Report the completed quantity of an operation.

        Reaching the planned quantity while IN_PROGRESS completes the
        operation in the same write.

        Raises:
            EntityNotFoundError: If the operation is missing or soft-deleted
            InvalidQuantityError: If the quantity is outside ``[0, planned]``
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        operation = await self.operations.get_by_id_required(operation_id)
        if not 0 <= completed_quantity <= operation.planned_quantity:
            raise InvalidQuantityError(completed_quantity, operation.planned_quantity)

        current = OperationStatus(operation.status)
        changes: dict = {"completed_quantity": completed_quantity}

        auto_complete = (
            completed_quantity == operation.planned_quantity
            and current == OperationStatus.IN_PROGRESS
        )
        if auto_complete:
            changes["status"] = OperationStatus.COMPLETED
            if operation.actual_end_time is None:
                changes["actual_end_time"] = self.clock.now()

        updated = await self.write(self.operations, operation_id, changes, expected_version)

        logger.info(
            "Operation quantity updated",
            operation_id=str(operation_id),
            completed_quantity=completed_quantity,
            planned_quantity=operation.planned_quantity,
        )
        if auto_complete:
            self.log_transition(ENTITY, operation_id, current, OperationStatus.COMPLETED)
        return updated

    async def get_progress(self, order_id: UUID) -> OperationProgress:
        """
        Progress of an order's operations.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
        """
        return compute_operation_progress(await self.list_operations(order_id))
