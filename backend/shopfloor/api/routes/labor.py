"""
Labor Assignment API Routes.

Clock-in, clock-out and break actions for operator assignments.
"""

from uuid import UUID

from fastapi import APIRouter, status

from shopfloor.api.deps import LaborServiceDep
from shopfloor.application.dtos import LaborAction
from shopfloor.infrastructure.database.models import LaborAssignmentPublic

router = APIRouter(prefix="/labor-assignments", tags=["labor"])


def _version(request: LaborAction | None) -> int | None:
    return request.expected_version if request else None


@router.get(
    "/operators/{operator_id}",
    summary="List an operator's assignments",
    response_model=list[LaborAssignmentPublic],
)
async def list_for_operator(operator_id: UUID, labor_service: LaborServiceDep):
    return await labor_service.list_for_operator(operator_id)


@router.get(
    "/{assignment_id}",
    summary="Get labor assignment",
    response_model=LaborAssignmentPublic,
    responses={404: {"description": "Assignment not found"}},
)
async def get_assignment(assignment_id: UUID, labor_service: LaborServiceDep):
    return await labor_service.get_assignment(assignment_id)


@router.delete(
    "/{assignment_id}",
    summary="Delete labor assignment",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Assignment not found"}},
)
async def delete_assignment(assignment_id: UUID, labor_service: LaborServiceDep) -> None:
    await labor_service.delete_assignment(assignment_id)


@router.post(
    "/{assignment_id}/clock-in",
    summary="Clock in",
    response_model=LaborAssignmentPublic,
)
async def clock_in(
    assignment_id: UUID,
    labor_service: LaborServiceDep,
    request: LaborAction | None = None,
):
    return await labor_service.clock_in(assignment_id, _version(request))


@router.post(
    "/{assignment_id}/clock-out",
    summary="Clock out",
    description="Derives actual hours from the clock-in time.",
    response_model=LaborAssignmentPublic,
)
async def clock_out(
    assignment_id: UUID,
    labor_service: LaborServiceDep,
    request: LaborAction | None = None,
):
    return await labor_service.clock_out(assignment_id, _version(request))


@router.post(
    "/{assignment_id}/break/start",
    summary="Start break",
    response_model=LaborAssignmentPublic,
)
async def start_break(
    assignment_id: UUID,
    labor_service: LaborServiceDep,
    request: LaborAction | None = None,
):
    return await labor_service.start_break(assignment_id, _version(request))


@router.post(
    "/{assignment_id}/break/end",
    summary="End break",
    response_model=LaborAssignmentPublic,
)
async def end_break(
    assignment_id: UUID,
    labor_service: LaborServiceDep,
    request: LaborAction | None = None,
):
    return await labor_service.end_break(assignment_id, _version(request))
