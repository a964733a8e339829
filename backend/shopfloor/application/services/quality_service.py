"""
Quality inspection service.

Quality checks are instantiated from inspection templates, move through a
status machine with no terminal state (finished checks can be reopened for
rework), and roll up into a per-order quality summary.
"""

from typing import Any
from uuid import UUID

from shopfloor.core.observability import get_logger
from shopfloor.domain.execution.services.metrics import compute_quality_summary
from shopfloor.domain.execution.value_objects.enums import (
    QualityCheckResult,
    QualityCheckStatus,
)
from shopfloor.domain.execution.value_objects.summaries import QualitySummary
from shopfloor.domain.shared.exceptions import BusinessRuleViolation, ValidationError
from shopfloor.infrastructure.database.models import (
    QualityCheck,
    QualityCheckCreate,
    QualityCheckTemplate,
)
from shopfloor.infrastructure.database.repositories import (
    OperationRepository,
    OrderRepository,
    Page,
    QualityCheckRepository,
)

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)

ENTITY = "QualityCheck"


class QualityService(ApplicationServiceBase):
    """Application service for quality checks."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self.checks = QualityCheckRepository(session, self.clock)
        self.orders = OrderRepository(session, self.clock)
        self.operations = OperationRepository(session, self.clock)

    async def get_check(self, check_id: UUID) -> QualityCheck:
        return await self.checks.get_by_id_required(check_id)

    async def list_checks(self, order_id: UUID) -> list[QualityCheck]:
        await self.orders.get_by_id_required(order_id)
        return await self.checks.find_by_order_id(order_id)

    async def list_for_operation(self, operation_id: UUID) -> list[QualityCheck]:
        await self.operations.get_by_id_required(operation_id)
        return await self.checks.find_by_operation_id(operation_id)

    async def search_checks(
        self,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page:
        """
        Page through checks with equality filters such as ``status``,
        ``operation_id``, ``inspector_id`` or ``is_required``.

        Raises:
            ValidationError: If a filter names an unknown field
        """
        return await self.checks.find_many(
            filters, page=page, limit=self.page_limit(limit)
        )

    async def create_check(self, request: QualityCheckCreate) -> QualityCheck:
        """Create one PENDING check; see ``create_from_templates`` for the rules."""
        (check,) = await self.create_from_templates(
            request.manufacturing_order_id,
            request.operation_id,
            request.work_center_id,
            [request],
        )
        return check

    async def delete_check(self, check_id: UUID) -> None:
        await self.remove(self.checks, check_id)

    async def create_from_templates(
        self,
        order_id: UUID,
        operation_id: UUID | None,
        work_center_id: UUID | None,
        templates: list[QualityCheckTemplate],
    ) -> list[QualityCheck]:
        """
        Create one PENDING check per inspection template.

        When an operation is given it must belong to the order, and its work
        center is used unless another is supplied.

        Raises:
            EntityNotFoundError: If the order or operation is missing
            ValidationError: If the operation belongs to another order or no
                templates are given
        """
        await self.orders.get_by_id_required(order_id)
        if not templates:
            raise ValidationError("templates", 0, "At least one template is required")

        if operation_id is not None:
            operation = await self.operations.get_by_id_required(operation_id)
            if operation.manufacturing_order_id != order_id:
                raise ValidationError(
                    "operation_id",
                    str(operation_id),
                    "Operation does not belong to the manufacturing order",
                )
            work_center_id = work_center_id or operation.work_center_id

        created = await self.checks.bulk_create(
            [
                {
                    **template.model_dump(),
                    "manufacturing_order_id": order_id,
                    "operation_id": operation_id,
                    "work_center_id": work_center_id,
                    "status": QualityCheckStatus.PENDING,
                }
                for template in templates
            ]
        )
        logger.info(
            "Quality checks created from templates",
            order_id=str(order_id),
            operation_id=str(operation_id) if operation_id else None,
            count=len(created),
        )
        return created

    async def transition_status(
        self,
        check_id: UUID,
        new_status: QualityCheckStatus | str,
        inspector_id: UUID | None = None,
        inspector_name: str | None = None,
        expected_version: int | None = None,
    ) -> QualityCheck:
        """
        Move a check along its status machine.

        The start time is stamped on first entry to IN_PROGRESS and the end
        time on first entry to PASSED or FAILED. A supplied inspector identity
        is recorded with the change.

        Raises:
            EntityNotFoundError: If the check is missing or soft-deleted
            InvalidTransitionError: If the edge is not permitted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        target = self.validate_enum(QualityCheckStatus, new_status, "status")
        check = await self.checks.get_by_id_required(check_id)
        current = QualityCheckStatus(check.status)

        self.check_transition(ENTITY, current, target)

        now = self.clock.now()
        changes: dict = {"status": target}
        if target == QualityCheckStatus.IN_PROGRESS and check.actual_start_time is None:
            changes["actual_start_time"] = now
        if target.is_finished and check.actual_end_time is None:
            changes["actual_end_time"] = now
        if inspector_id is not None:
            changes["inspector_id"] = inspector_id
        if inspector_name is not None:
            changes["inspector_name"] = inspector_name

        updated = await self.write(self.checks, check_id, changes, expected_version)
        self.log_transition(ENTITY, check_id, current, target)
        return updated

    async def record_result(
        self,
        check_id: UUID,
        result: QualityCheckResult | str,
        measured_value: float | None = None,
        notes: str | None = None,
        inspector_id: UUID | None = None,
        inspector_name: str | None = None,
        expected_version: int | None = None,
    ) -> QualityCheck:
        """
        Record an inspection result and derive the check status from it.

        Recording a result always closes the inspection cycle, so
        ``actual_end_time`` is set to now even if already stamped.

        Raises:
            EntityNotFoundError: If the check is missing or soft-deleted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        result = self.validate_enum(QualityCheckResult, result, "result")
        check = await self.checks.get_by_id_required(check_id)
        current = QualityCheckStatus(check.status)
        target = result.resulting_status

        changes: dict = {
            "result": result,
            "status": target,
            "actual_end_time": self.clock.now(),
        }
        if measured_value is not None:
            changes["measured_value"] = measured_value
        if notes is not None:
            changes["notes"] = notes
        if inspector_id is not None:
            changes["inspector_id"] = inspector_id
        if inspector_name is not None:
            changes["inspector_name"] = inspector_name

        updated = await self.write(self.checks, check_id, changes, expected_version)
        logger.info(
            "Quality result recorded",
            check_id=str(check_id),
            result=result.value,
            measured_value=measured_value,
        )
        if current != target:
            self.log_transition(ENTITY, check_id, current, target)
        return updated

    async def record_second_check(
        self,
        check_id: UUID,
        result: QualityCheckResult | str,
        inspector_id: UUID,
        expected_version: int | None = None,
    ) -> QualityCheck:
        """
        Record the independent second inspection of a check.

        A failing second check fails the check regardless of the primary
        result.

        Raises:
            EntityNotFoundError: If the check is missing or soft-deleted
            BusinessRuleViolation: If the check takes no second check, has no
                primary result yet, or the same inspector signs both
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        result = self.validate_enum(QualityCheckResult, result, "result")
        check = await self.checks.get_by_id_required(check_id)

        if not check.requires_second_check:
            raise BusinessRuleViolation(
                "SECOND_CHECK_NOT_REQUIRED",
                f"Quality check {check_id} does not require a second check",
            )
        if check.result is None:
            raise BusinessRuleViolation(
                "PRIMARY_RESULT_MISSING",
                f"Quality check {check_id} has no primary result yet",
            )
        if check.inspector_id is not None and check.inspector_id == inspector_id:
            raise BusinessRuleViolation(
                "SECOND_INSPECTOR_MUST_DIFFER",
                "Second check must be made by a different inspector",
            )

        current = QualityCheckStatus(check.status)
        changes: dict = {
            "second_check_by": inspector_id,
            "second_check_result": result,
        }
        if result == QualityCheckResult.FAIL:
            changes["status"] = QualityCheckStatus.FAILED

        updated = await self.write(self.checks, check_id, changes, expected_version)
        logger.info(
            "Second check recorded",
            check_id=str(check_id),
            result=result.value,
        )
        if current != QualityCheckStatus(updated.status):
            self.log_transition(ENTITY, check_id, current, QualityCheckStatus.FAILED)
        return updated

    async def get_quality_summary(self, order_id: UUID) -> QualitySummary:
        """
        Quality roll-up of an order's checks.

        Raises:
            EntityNotFoundError: If the order is missing or soft-deleted
        """
        return compute_quality_summary(await self.list_checks(order_id))
