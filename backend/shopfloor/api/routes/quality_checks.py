"""
Quality Check API Routes.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from shopfloor.api.deps import QualityServiceDep
from shopfloor.application.dtos import (
    QualityCheckPageResponse,
    QualityResultRecord,
    QualityStatusUpdate,
    SecondCheckRecord,
)
from shopfloor.domain.execution.value_objects.enums import (
    QualityCheckResult,
    QualityCheckStatus,
    QualityCheckType,
)
from shopfloor.infrastructure.database.models import (
    QualityCheckCreate,
    QualityCheckPublic,
)

router = APIRouter(prefix="/quality-checks", tags=["quality-checks"])


@router.get(
    "/",
    summary="List quality checks",
    description="Quality checks across orders, filtered and paginated.",
    response_model=QualityCheckPageResponse,
)
async def list_checks(
    quality_service: QualityServiceDep,
    order_id: UUID | None = Query(None, alias="manufacturingOrderId"),
    operation_id: UUID | None = Query(None, alias="operationId"),
    work_center_id: UUID | None = Query(None, alias="workCenterId"),
    status_filter: QualityCheckStatus | None = Query(None, alias="status"),
    result: QualityCheckResult | None = None,
    inspector_id: UUID | None = Query(None, alias="inspectorId"),
    check_type: QualityCheckType | None = Query(None, alias="checkType"),
    is_required: bool | None = Query(None, alias="isRequired"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    checks = await quality_service.search_checks(
        {
            "manufacturing_order_id": order_id,
            "operation_id": operation_id,
            "work_center_id": work_center_id,
            "status": status_filter,
            "result": result,
            "inspector_id": inspector_id,
            "check_type": check_type,
            "is_required": is_required,
        },
        page=page,
        limit=limit,
    )
    return QualityCheckPageResponse.model_validate(checks)


@router.post(
    "/",
    summary="Create quality check",
    response_model=QualityCheckPublic,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Order or operation not found"},
        422: {"description": "Operation belongs to another order"},
    },
)
async def create_check(request: QualityCheckCreate, quality_service: QualityServiceDep):
    return await quality_service.create_check(request)


@router.get(
    "/{check_id}",
    summary="Get quality check",
    response_model=QualityCheckPublic,
    responses={404: {"description": "Quality check not found"}},
)
async def get_check(check_id: UUID, quality_service: QualityServiceDep):
    return await quality_service.get_check(check_id)


@router.delete(
    "/{check_id}",
    summary="Delete quality check",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Quality check not found"}},
)
async def delete_check(check_id: UUID, quality_service: QualityServiceDep) -> None:
    await quality_service.delete_check(check_id)


@router.patch(
    "/{check_id}/status",
    summary="Change quality check status",
    response_model=QualityCheckPublic,
    responses={409: {"description": "Transition not permitted or version conflict"}},
)
async def transition_check_status(
    check_id: UUID, request: QualityStatusUpdate, quality_service: QualityServiceDep
):
    return await quality_service.transition_status(
        check_id,
        request.status,
        inspector_id=request.inspector_id,
        inspector_name=request.inspector_name,
        expected_version=request.expected_version,
    )


@router.post(
    "/{check_id}/result",
    summary="Record inspection result",
    response_model=QualityCheckPublic,
)
async def record_result(
    check_id: UUID, request: QualityResultRecord, quality_service: QualityServiceDep
):
    return await quality_service.record_result(
        check_id,
        request.result,
        measured_value=request.measured_value,
        notes=request.notes,
        inspector_id=request.inspector_id,
        inspector_name=request.inspector_name,
        expected_version=request.expected_version,
    )


@router.post(
    "/{check_id}/second-check",
    summary="Record second check",
    response_model=QualityCheckPublic,
    responses={409: {"description": "Second check not allowed"}},
)
async def record_second_check(
    check_id: UUID, request: SecondCheckRecord, quality_service: QualityServiceDep
):
    return await quality_service.record_second_check(
        check_id, request.result, request.inspector_id, request.expected_version
    )
