"""
Manufacturing Order API Routes.

Order creation, listing and status changes, plus the order-scoped views of
operations, quality checks and execution progress.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from shopfloor.api.deps import (
    OperationServiceDep,
    OrderServiceDep,
    QualityServiceDep,
    SummaryServiceDep,
)
from shopfloor.application.dtos import (
    OrderPageResponse,
    OrderStatusUpdate,
    OrderUpdate,
    QualityTemplatesRequest,
    RoutingRequest,
    VersionedRequest,
)
from shopfloor.domain.execution.value_objects.enums import OrderStatus
from shopfloor.domain.execution.value_objects.summaries import (
    ExecutionSummary,
    OperationProgress,
    OrderStatistics,
    QualitySummary,
)
from shopfloor.infrastructure.database.models import (
    ManufacturingOrderCreate,
    ManufacturingOrderPublic,
    OrderOperationPublic,
    QualityCheckPublic,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "/",
    summary="Create manufacturing order",
    description="Create a PLANNED order; the order number is generated when omitted.",
    response_model=ManufacturingOrderPublic,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Invalid order data or duplicate number"}},
)
async def create_order(
    request: ManufacturingOrderCreate, order_service: OrderServiceDep
):
    return await order_service.create_order(request)


@router.get(
    "/",
    summary="List manufacturing orders",
    response_model=OrderPageResponse,
)
async def list_orders(
    order_service: OrderServiceDep,
    status_filter: OrderStatus | None = Query(None, alias="status"),
    product_id: UUID | None = Query(None, alias="productId"),
    priority: int | None = Query(None, ge=1, le=10),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
):
    result = await order_service.list_orders(
        status=status_filter,
        product_id=product_id,
        priority=priority,
        page=page,
        limit=limit,
    )
    return OrderPageResponse.model_validate(result)


@router.get(
    "/statistics",
    summary="Order statistics",
    description="Counts by status, overdue orders and mean lead time in hours.",
    response_model=OrderStatistics,
)
async def get_statistics(order_service: OrderServiceDep):
    return await order_service.get_statistics()


@router.get(
    "/{order_id}",
    summary="Get manufacturing order",
    response_model=ManufacturingOrderPublic,
    responses={404: {"description": "Order not found"}},
)
async def get_order(order_id: UUID, order_service: OrderServiceDep):
    return await order_service.get_order(order_id)


@router.put(
    "/{order_id}",
    summary="Update manufacturing order",
    description="Edit planning fields of an open order; omitted fields are kept.",
    response_model=ManufacturingOrderPublic,
    responses={
        404: {"description": "Order not found"},
        409: {"description": "Order closed or version conflict"},
        422: {"description": "Invalid field values"},
    },
)
async def update_order(
    order_id: UUID, request: OrderUpdate, order_service: OrderServiceDep
):
    return await order_service.update_order(order_id, request)


@router.patch(
    "/{order_id}/status",
    summary="Change order status",
    response_model=ManufacturingOrderPublic,
    responses={
        404: {"description": "Order not found"},
        409: {"description": "Transition not permitted or version conflict"},
    },
)
async def transition_order_status(
    order_id: UUID, request: OrderStatusUpdate, order_service: OrderServiceDep
):
    return await order_service.transition_status(
        order_id, request.status, request.expected_version
    )


@router.post(
    "/{order_id}/cancel",
    summary="Cancel manufacturing order",
    response_model=ManufacturingOrderPublic,
    responses={409: {"description": "Order already finished"}},
)
async def cancel_order(
    order_id: UUID,
    order_service: OrderServiceDep,
    request: VersionedRequest | None = None,
):
    return await order_service.cancel_order(
        order_id, request.expected_version if request else None
    )


@router.delete(
    "/{order_id}",
    summary="Delete manufacturing order",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Order not found"}},
)
async def delete_order(order_id: UUID, order_service: OrderServiceDep) -> None:
    await order_service.delete_order(order_id)


@router.get(
    "/{order_id}/execution-summary",
    summary="Execution summary",
    description="Order, operation progress, quality and labor roll-ups in one read.",
    response_model=ExecutionSummary,
)
async def get_execution_summary(order_id: UUID, summary_service: SummaryServiceDep):
    return await summary_service.get_execution_summary(order_id)


@router.get(
    "/{order_id}/progress",
    summary="Operation progress",
    response_model=OperationProgress,
)
async def get_progress(order_id: UUID, operation_service: OperationServiceDep):
    return await operation_service.get_progress(order_id)


@router.get(
    "/{order_id}/quality-summary",
    summary="Quality summary",
    response_model=QualitySummary,
)
async def get_quality_summary(order_id: UUID, quality_service: QualityServiceDep):
    return await quality_service.get_quality_summary(order_id)


@router.get(
    "/{order_id}/operations",
    summary="List order operations",
    response_model=list[OrderOperationPublic],
)
async def list_operations(order_id: UUID, operation_service: OperationServiceDep):
    return await operation_service.list_operations(order_id)


@router.post(
    "/{order_id}/operations",
    summary="Create operations from routing",
    response_model=list[OrderOperationPublic],
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Duplicate or invalid sequence numbers"}},
)
async def create_from_routing(
    order_id: UUID, request: RoutingRequest, operation_service: OperationServiceDep
):
    return await operation_service.create_from_routing(order_id, request.steps)


@router.get(
    "/{order_id}/quality-checks",
    summary="List quality checks",
    response_model=list[QualityCheckPublic],
)
async def list_quality_checks(order_id: UUID, quality_service: QualityServiceDep):
    return await quality_service.list_checks(order_id)


@router.post(
    "/{order_id}/quality-checks",
    summary="Create quality checks from templates",
    response_model=list[QualityCheckPublic],
    status_code=status.HTTP_201_CREATED,
)
async def create_quality_checks(
    order_id: UUID,
    request: QualityTemplatesRequest,
    quality_service: QualityServiceDep,
):
    return await quality_service.create_from_templates(
        order_id, request.operation_id, request.work_center_id, request.templates
    )
