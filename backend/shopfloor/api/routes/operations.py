"""
Order Operation API Routes.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from shopfloor.api.deps import LaborServiceDep, OperationServiceDep, QualityServiceDep
from shopfloor.application.dtos import (
    OperationPageResponse,
    OperationStatusUpdate,
    OperationUpdate,
    QuantityUpdate,
)
from shopfloor.domain.execution.value_objects.enums import OperationStatus
from shopfloor.domain.execution.value_objects.summaries import LaborSummary
from shopfloor.infrastructure.database.models import (
    LaborAssignmentCreate,
    LaborAssignmentPublic,
    OrderOperationCreate,
    OrderOperationPublic,
    QualityCheckPublic,
)

router = APIRouter(prefix="/operations", tags=["operations"])


@router.get(
    "/",
    summary="List operations",
    description="Operations across orders, filtered and paginated, in sequence order.",
    response_model=OperationPageResponse,
)
async def list_operations(
    operation_service: OperationServiceDep,
    order_id: UUID | None = Query(None, alias="manufacturingOrderId"),
    work_center_id: UUID | None = Query(None, alias="workCenterId"),
    status_filter: OperationStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    result = await operation_service.search_operations(
        order_id=order_id,
        work_center_id=work_center_id,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return OperationPageResponse.model_validate(result)


@router.post(
    "/",
    summary="Create operation",
    description="Add a single WAITING operation to an order.",
    response_model=OrderOperationPublic,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Order not found"},
        422: {"description": "Sequence already used"},
    },
)
async def create_operation(
    request: OrderOperationCreate, operation_service: OperationServiceDep
):
    return await operation_service.create_operation(request)


@router.get(
    "/{operation_id}",
    summary="Get operation",
    response_model=OrderOperationPublic,
    responses={404: {"description": "Operation not found"}},
)
async def get_operation(operation_id: UUID, operation_service: OperationServiceDep):
    return await operation_service.get_operation(operation_id)


@router.put(
    "/{operation_id}",
    summary="Update operation",
    description="Edit planning fields; omitted fields are kept.",
    response_model=OrderOperationPublic,
    responses={
        404: {"description": "Operation not found"},
        422: {"description": "Invalid or conflicting field values"},
    },
)
async def update_operation(
    operation_id: UUID,
    request: OperationUpdate,
    operation_service: OperationServiceDep,
):
    return await operation_service.update_operation(operation_id, request)


@router.delete(
    "/{operation_id}",
    summary="Delete operation",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Operation not found"}},
)
async def delete_operation(
    operation_id: UUID, operation_service: OperationServiceDep
) -> None:
    await operation_service.delete_operation(operation_id)


@router.patch(
    "/{operation_id}/status",
    summary="Change operation status",
    response_model=OrderOperationPublic,
    responses={409: {"description": "Transition not permitted or version conflict"}},
)
async def transition_operation_status(
    operation_id: UUID,
    request: OperationStatusUpdate,
    operation_service: OperationServiceDep,
):
    return await operation_service.transition_status(
        operation_id, request.status, request.expected_version
    )


@router.patch(
    "/{operation_id}/quantity",
    summary="Report completed quantity",
    description="Reaching the planned quantity while in progress completes the operation.",
    response_model=OrderOperationPublic,
    responses={422: {"description": "Quantity outside [0, planned]"}},
)
async def update_quantity(
    operation_id: UUID,
    request: QuantityUpdate,
    operation_service: OperationServiceDep,
):
    return await operation_service.update_quantity(
        operation_id, request.completed_quantity, request.expected_version
    )


@router.get(
    "/{operation_id}/labor-summary",
    summary="Labor summary",
    response_model=LaborSummary,
)
async def get_labor_summary(operation_id: UUID, labor_service: LaborServiceDep):
    return await labor_service.get_labor_summary(operation_id)


@router.get(
    "/{operation_id}/labor-assignments",
    summary="List labor assignments",
    response_model=list[LaborAssignmentPublic],
)
async def list_assignments(operation_id: UUID, labor_service: LaborServiceDep):
    return await labor_service.list_assignments(operation_id)


@router.post(
    "/{operation_id}/labor-assignments",
    summary="Assign operator",
    response_model=LaborAssignmentPublic,
    status_code=status.HTTP_201_CREATED,
)
async def assign_operator(
    operation_id: UUID,
    request: LaborAssignmentCreate,
    labor_service: LaborServiceDep,
):
    return await labor_service.assign_operator(operation_id, request)


@router.get(
    "/{operation_id}/quality-checks",
    summary="List operation quality checks",
    response_model=list[QualityCheckPublic],
    responses={404: {"description": "Operation not found"}},
)
async def list_quality_checks(
    operation_id: UUID, quality_service: QualityServiceDep
):
    return await quality_service.list_for_operation(operation_id)
