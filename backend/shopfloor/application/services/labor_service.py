"""
Labor time tracking service.

Clock-in/out and break toggles for operator assignments. Hours are derived
only at clock-out; break time is not subtracted.
"""

from uuid import UUID

from shopfloor.core.observability import get_logger
from shopfloor.domain.execution.services.metrics import (
    compute_labor_summary,
    worked_hours,
)
from shopfloor.domain.execution.value_objects.enums import LaborStatus
from shopfloor.domain.execution.value_objects.summaries import LaborSummary
from shopfloor.infrastructure.database.models import (
    LaborAssignment,
    LaborAssignmentCreate,
)
from shopfloor.infrastructure.database.repositories import (
    LaborAssignmentRepository,
    OperationRepository,
)

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)

ENTITY = "LaborAssignment"


class LaborService(ApplicationServiceBase):
    """Application service for operator labor assignments."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self.assignments = LaborAssignmentRepository(session, self.clock)
        self.operations = OperationRepository(session, self.clock)

    async def assign_operator(
        self, operation_id: UUID, request: LaborAssignmentCreate
    ) -> LaborAssignment:
        """
        Assign an operator to an operation in ASSIGNED status.

        Raises:
            EntityNotFoundError: If the operation is missing or soft-deleted
        """
        await self.operations.get_by_id_required(operation_id)
        assignment = await self.assignments.create(
            {
                **request.model_dump(),
                "operation_id": operation_id,
                "status": LaborStatus.ASSIGNED,
            }
        )
        logger.info(
            "Operator assigned",
            assignment_id=str(assignment.id),
            operation_id=str(operation_id),
            operator_id=str(assignment.operator_id),
        )
        return assignment

    async def get_assignment(self, assignment_id: UUID) -> LaborAssignment:
        return await self.assignments.get_by_id_required(assignment_id)

    async def list_assignments(self, operation_id: UUID) -> list[LaborAssignment]:
        await self.operations.get_by_id_required(operation_id)
        return await self.assignments.find_by_operation_id(operation_id)

    async def list_for_operator(self, operator_id: UUID) -> list[LaborAssignment]:
        return await self.assignments.find_by_operator_id(operator_id)

    async def delete_assignment(self, assignment_id: UUID) -> None:
        await self.remove(self.assignments, assignment_id)

    async def _set_status(
        self,
        assignment_id: UUID,
        target: LaborStatus,
        extra: dict | None = None,
        expected_version: int | None = None,
        assignment: LaborAssignment | None = None,
    ) -> LaborAssignment:
        if assignment is None:
            assignment = await self.assignments.get_by_id_required(assignment_id)
        current = LaborStatus(assignment.status)

        changes = {"status": target, **(extra or {})}
        updated = await self.write(
            self.assignments, assignment_id, changes, expected_version
        )
        self.log_transition(ENTITY, assignment_id, current, target)
        return updated

    async def clock_in(
        self, assignment_id: UUID, expected_version: int | None = None
    ) -> LaborAssignment:
        return await self._set_status(
            assignment_id,
            LaborStatus.ACTIVE,
            {"clock_in_time": self.clock.now()},
            expected_version,
        )

    async def clock_out(
        self, assignment_id: UUID, expected_version: int | None = None
    ) -> LaborAssignment:
        """
        Clock an operator out and derive the worked hours.

        ``actual_hours`` is overwritten with the span since clock-in, or
        cleared if the operator never clocked in.

        Raises:
            EntityNotFoundError: If the assignment is missing or soft-deleted
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        assignment = await self.assignments.get_by_id_required(assignment_id)
        now = self.clock.now()
        hours = worked_hours(assignment.clock_in_time, now)

        updated = await self._set_status(
            assignment_id,
            LaborStatus.OFFLINE,
            {"clock_out_time": now, "actual_hours": hours},
            expected_version,
            assignment=assignment,
        )
        logger.info(
            "Operator clocked out",
            assignment_id=str(assignment_id),
            actual_hours=hours,
        )
        return updated

    async def start_break(
        self, assignment_id: UUID, expected_version: int | None = None
    ) -> LaborAssignment:
        return await self._set_status(
            assignment_id, LaborStatus.ON_BREAK, expected_version=expected_version
        )

    async def end_break(
        self, assignment_id: UUID, expected_version: int | None = None
    ) -> LaborAssignment:
        return await self._set_status(
            assignment_id, LaborStatus.ACTIVE, expected_version=expected_version
        )

    async def get_labor_summary(self, operation_id: UUID) -> LaborSummary:
        """
        Labor roll-up for one operation.

        Raises:
            EntityNotFoundError: If the operation is missing or soft-deleted
        """
        return compute_labor_summary(await self.list_assignments(operation_id))
