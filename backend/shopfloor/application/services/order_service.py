"""
Manufacturing order lifecycle service.

Owns the order status machine and its timestamp side effects, plus order
creation, editing, listing, cancellation, soft deletion and statistics.
"""

from uuid import UUID

from shopfloor.application.dtos import OrderUpdate
from shopfloor.core.observability import get_logger
from shopfloor.domain.execution.value_objects.enums import OrderStatus
from shopfloor.domain.execution.value_objects.summaries import OrderStatistics
from shopfloor.domain.shared.exceptions import BusinessRuleViolation, ValidationError
from shopfloor.infrastructure.database.models import (
    ManufacturingOrder,
    ManufacturingOrderCreate,
)
from shopfloor.infrastructure.database.repositories import OrderRepository, Page

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)

ENTITY = "ManufacturingOrder"

REQUIRED_ORDER_FIELDS = frozenset({"quantity", "uom", "priority"})


class OrderService(ApplicationServiceBase):
    """Application service for manufacturing orders."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self.orders = OrderRepository(session, self.clock)

    async def create_order(self, request: ManufacturingOrderCreate) -> ManufacturingOrder:
        """
        Create a PLANNED order, generating its number when none is supplied.

        Raises:
            ValidationError: If the planned window is inverted or the order
                number is already taken
        """
        self.validate_window(
            "planned_end_date", request.planned_start_date, request.planned_end_date
        )

        order_number = request.order_number
        if order_number is None:
            order_number = await self.orders.next_order_number(self.clock.now().year)
        elif await self.orders.find_by_order_number(order_number):
            raise ValidationError(
                "order_number", order_number, "Order number already exists", "DUPLICATE"
            )

        data = request.model_dump(exclude={"order_number"})
        data.update(order_number=order_number, status=OrderStatus.PLANNED)
        order = await self.orders.create(data)

        logger.info(
            "Manufacturing order created",
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return order

    async def get_order(self, order_id: UUID) -> ManufacturingOrder:
        return await self.orders.get_by_id_required(order_id)

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        product_id: UUID | None = None,
        priority: int | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page:
        return await self.orders.find_many(
            {"status": status, "product_id": product_id, "priority": priority},
            page=page,
            limit=self.page_limit(limit),
        )

    async def update_order(
        self, order_id: UUID, request: OrderUpdate
    ) -> ManufacturingOrder:
        """
        Edit the planning fields of an open order.

        Status and actual dates only change through transitions.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
            BusinessRuleViolation: If the order is COMPLETED or CANCELLED
            ValidationError: If a required field is nulled or the planned
                window ends up inverted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        changes = self.edited_fields(request, REQUIRED_ORDER_FIELDS)
        order = await self.orders.get_by_id_required(order_id)
        status = OrderStatus(order.status)
        if not status.is_open:
            raise BusinessRuleViolation(
                "ORDER_CLOSED",
                f"Order {order.order_number} is {status.value} and can no longer be edited",
                {"order_id": str(order_id), "status": status.value},
            )

        self.validate_window(
            "planned_end_date",
            changes.get("planned_start_date", order.planned_start_date),
            changes.get("planned_end_date", order.planned_end_date),
        )

        updated = await self.write(
            self.orders, order_id, changes, request.expected_version
        )
        logger.info(
            "Manufacturing order updated",
            order_id=str(order_id),
            fields=sorted(changes),
        )
        return updated

    async def transition_status(
        self,
        order_id: UUID,
        new_status: OrderStatus | str,
        expected_version: int | None = None,
    ) -> ManufacturingOrder:
        """
        Move an order along its status machine.

        The first entry to IN_PROGRESS stamps ``actual_start_date`` and the
        first entry to COMPLETED stamps ``actual_end_date``; existing stamps
        are never overwritten. Status and stamps are written together.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
            InvalidTransitionError: If the edge is not permitted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        target = self.validate_enum(OrderStatus, new_status, "status")
        order = await self.orders.get_by_id_required(order_id)
        current = OrderStatus(order.status)

        self.check_transition(ENTITY, current, target)

        now = self.clock.now()
        changes: dict = {"status": target}
        if target == OrderStatus.IN_PROGRESS and order.actual_start_date is None:
            changes["actual_start_date"] = now
        if target == OrderStatus.COMPLETED and order.actual_end_date is None:
            changes["actual_end_date"] = now

        updated = await self.write(self.orders, order_id, changes, expected_version)
        self.log_transition(ENTITY, order_id, current, target)
        return updated

    async def cancel_order(
        self, order_id: UUID, expected_version: int | None = None
    ) -> ManufacturingOrder:
        return await self.transition_status(
            order_id, OrderStatus.CANCELLED, expected_version
        )

    async def delete_order(self, order_id: UUID) -> None:
        await self.remove(self.orders, order_id)

    async def get_statistics(self) -> OrderStatistics:
        return await self.orders.get_statistics(self.clock.now())
