"""
Request and response DTOs for execution operations.

Field names are snake_case in Python and accepted in camelCase on the wire.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shopfloor.domain.execution.value_objects.enums import (
    OperationStatus,
    OrderStatus,
    QualityCheckResult,
    QualityCheckStatus,
)
from shopfloor.infrastructure.database.models import (
    ManufacturingOrderPublic,
    OrderOperationPublic,
    QualityCheckPublic,
    QualityCheckTemplate,
    RoutingStep,
)


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class VersionedRequest(RequestModel):
    """Mixin for writes that may be made conditional on the row version."""

    expected_version: int | None = Field(default=None, ge=1)


class OrderStatusUpdate(VersionedRequest):
    status: OrderStatus


class OperationStatusUpdate(VersionedRequest):
    status: OperationStatus


class QuantityUpdate(VersionedRequest):
    completed_quantity: float = Field(allow_inf_nan=False)


class OrderUpdate(VersionedRequest):
    """Editable order fields; omitted fields keep their stored value."""

    quantity: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    uom: str | None = Field(default=None, min_length=1, max_length=20)
    bom_id: UUID | None = None
    routing_id: UUID | None = None
    planned_start_date: datetime | None = None
    planned_end_date: datetime | None = None
    priority: int | None = Field(default=None, ge=1, le=10)
    notes: str | None = None


class OperationUpdate(VersionedRequest):
    """Editable operation fields; omitted fields keep their stored value."""

    work_center_id: UUID | None = None
    operation_code: str | None = Field(default=None, min_length=1, max_length=50)
    sequence: int | None = Field(default=None, gt=0)
    planned_quantity: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    planned_start_time: datetime | None = None
    planned_end_time: datetime | None = None


class QualityStatusUpdate(VersionedRequest):
    status: QualityCheckStatus
    inspector_id: UUID | None = None
    inspector_name: str | None = Field(default=None, max_length=100)


class QualityResultRecord(VersionedRequest):
    result: QualityCheckResult
    measured_value: float | None = None
    notes: str | None = None
    inspector_id: UUID | None = None
    inspector_name: str | None = Field(default=None, max_length=100)


class SecondCheckRecord(VersionedRequest):
    result: QualityCheckResult
    inspector_id: UUID


class RoutingRequest(RequestModel):
    steps: list[RoutingStep] = Field(min_length=1)


class QualityTemplatesRequest(RequestModel):
    operation_id: UUID | None = None
    work_center_id: UUID | None = None
    templates: list[QualityCheckTemplate] = Field(min_length=1)


class LaborAction(VersionedRequest):
    """Body of clock-in, clock-out and break requests; all fields optional."""

    pass


class ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationResponse(ResponseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class OrderPageResponse(ResponseModel):
    data: list[ManufacturingOrderPublic]
    pagination: PaginationResponse


class OperationPageResponse(ResponseModel):
    data: list[OrderOperationPublic]
    pagination: PaginationResponse


class QualityCheckPageResponse(ResponseModel):
    data: list[QualityCheckPublic]
    pagination: PaginationResponse
