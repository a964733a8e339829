"""
SQLModel table definitions for shopfloor execution entities.

These models serve as both Pydantic models for API serialization and
SQLAlchemy ORM models for database operations. Column names are snake_case;
the ``*Public`` models serialize with camelCase aliases.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from shopfloor.domain.execution.value_objects.enums import (
    LaborRole,
    LaborStatus,
    OperationStatus,
    OrderStatus,
    QualityCheckResult,
    QualityCheckStatus,
    QualityCheckType,
)
from shopfloor.domain.shared.clock import ensure_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always reads back in UTC.

    SQLite drops tzinfo on storage; values are re-tagged as UTC on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        return ensure_utc(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(SQLModel):
    """Non-table model that reads and writes camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Base classes for shared fields
class TimestampedModel(SQLModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class TrackedModel(TimestampedModel):
    """UUID primary key, soft-delete flag and write counter."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    is_active: bool = Field(default=True, index=True)
    version: int = Field(default=1, ge=1)


# Manufacturing order tables
class ManufacturingOrderBase(SQLModel):
    """Base manufacturing order model with shared fields."""

    product_id: UUID = Field(index=True)
    quantity: float = Field(gt=0)
    uom: str = Field(default="EA", max_length=20)
    bom_id: UUID | None = None
    routing_id: UUID | None = None
    planned_start_date: datetime | None = Field(default=None, sa_type=UTCDateTime)
    planned_end_date: datetime | None = Field(default=None, sa_type=UTCDateTime)
    priority: int = Field(default=5, ge=1, le=10)
    notes: str | None = None


class ManufacturingOrder(ManufacturingOrderBase, TrackedModel, table=True):
    """Manufacturing order table definition."""

    __tablename__ = "manufacturing_orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_quantity_positive"),
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_order_priority_range"),
    )

    order_number: str = Field(max_length=50, unique=True, index=True)
    status: OrderStatus = Field(default=OrderStatus.PLANNED, index=True)
    actual_start_date: datetime | None = Field(default=None, sa_type=UTCDateTime)
    actual_end_date: datetime | None = Field(default=None, sa_type=UTCDateTime)


class ManufacturingOrderCreate(ManufacturingOrderBase, CamelModel):
    """Manufacturing order creation model; the number is generated if omitted."""

    order_number: str | None = Field(default=None, min_length=1, max_length=50)


class ManufacturingOrderPublic(ManufacturingOrderBase, TrackedModel, CamelModel):
    """Manufacturing order public model for API responses."""

    order_number: str
    status: OrderStatus
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None


# Order operation tables
class OrderOperationBase(SQLModel):
    """Base order operation model with shared fields."""

    work_center_id: UUID = Field(index=True)
    operation_code: str = Field(min_length=1, max_length=50)
    sequence: int = Field(gt=0)
    planned_quantity: float = Field(gt=0)
    planned_start_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    planned_end_time: datetime | None = Field(default=None, sa_type=UTCDateTime)


class OrderOperation(OrderOperationBase, TrackedModel, table=True):
    """Order operation table definition."""

    __tablename__ = "order_operations"
    __table_args__ = (
        UniqueConstraint(
            "manufacturing_order_id", "sequence", name="uq_operation_order_sequence"
        ),
        CheckConstraint("sequence > 0", name="ck_operation_sequence_positive"),
        CheckConstraint(
            "planned_quantity > 0", name="ck_operation_planned_quantity_positive"
        ),
        CheckConstraint(
            "completed_quantity >= 0 AND completed_quantity <= planned_quantity",
            name="ck_operation_completed_quantity_range",
        ),
    )

    manufacturing_order_id: UUID = Field(
        foreign_key="manufacturing_orders.id", index=True
    )
    completed_quantity: float = Field(default=0, ge=0)
    status: OperationStatus = Field(default=OperationStatus.WAITING, index=True)
    actual_start_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    actual_end_time: datetime | None = Field(default=None, sa_type=UTCDateTime)


class RoutingStep(OrderOperationBase, CamelModel):
    """One routing step, created as a WAITING operation."""

    pass


class OrderOperationCreate(RoutingStep):
    """A single operation added to an existing order."""

    manufacturing_order_id: UUID


class OrderOperationPublic(OrderOperationBase, TrackedModel, CamelModel):
    """Order operation public model for API responses."""

    manufacturing_order_id: UUID
    completed_quantity: float
    status: OperationStatus
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None


# Quality check tables
class QualityCheckBase(SQLModel):
    """Quality check definition as carried by an inspection template."""

    check_code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    check_type: QualityCheckType = Field(default=QualityCheckType.VISUAL)
    specification: str | None = None
    tolerance: str | None = Field(default=None, max_length=100)
    unit: str | None = Field(default=None, max_length=20)
    target_value: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    sequence: int = Field(default=1, gt=0)
    is_required: bool = True
    requires_second_check: bool = False


class QualityCheck(QualityCheckBase, TrackedModel, table=True):
    """Quality check table definition."""

    __tablename__ = "quality_checks"

    manufacturing_order_id: UUID = Field(
        foreign_key="manufacturing_orders.id", index=True
    )
    operation_id: UUID | None = Field(
        default=None, foreign_key="order_operations.id", index=True
    )
    work_center_id: UUID | None = None
    status: QualityCheckStatus = Field(default=QualityCheckStatus.PENDING, index=True)
    result: QualityCheckResult | None = None
    measured_value: float | None = None
    notes: str | None = None
    planned_start_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    planned_end_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    actual_start_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    actual_end_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    inspector_id: UUID | None = None
    inspector_name: str | None = Field(default=None, max_length=100)
    second_check_by: UUID | None = None
    second_check_result: QualityCheckResult | None = None
    corrective_action: str | None = None


class QualityCheckTemplate(QualityCheckBase, CamelModel):
    """Inspection template a check is instantiated from."""

    planned_start_time: datetime | None = None
    planned_end_time: datetime | None = None


class QualityCheckCreate(QualityCheckTemplate):
    """A single quality check added outside a template batch."""

    manufacturing_order_id: UUID
    operation_id: UUID | None = None
    work_center_id: UUID | None = None


class QualityCheckPublic(QualityCheckBase, TrackedModel, CamelModel):
    """Quality check public model for API responses."""

    manufacturing_order_id: UUID
    operation_id: UUID | None = None
    work_center_id: UUID | None = None
    status: QualityCheckStatus
    result: QualityCheckResult | None = None
    measured_value: float | None = None
    notes: str | None = None
    planned_start_time: datetime | None = None
    planned_end_time: datetime | None = None
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    inspector_id: UUID | None = None
    inspector_name: str | None = None
    second_check_by: UUID | None = None
    second_check_result: QualityCheckResult | None = None
    corrective_action: str | None = None


# Labor assignment tables
class LaborAssignmentBase(SQLModel):
    """Base labor assignment model with shared fields."""

    operator_id: UUID = Field(index=True)
    operator_number: str | None = Field(default=None, max_length=50)
    operator_name: str = Field(min_length=1, max_length=100)
    role: LaborRole = Field(default=LaborRole.PRIMARY)
    planned_hours: float = Field(default=0, ge=0)
    hourly_rate: float | None = Field(default=None, ge=0)


class LaborAssignment(LaborAssignmentBase, TrackedModel, table=True):
    """Labor assignment table definition."""

    __tablename__ = "labor_assignments"

    operation_id: UUID = Field(foreign_key="order_operations.id", index=True)
    status: LaborStatus = Field(default=LaborStatus.ASSIGNED)
    clock_in_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    clock_out_time: datetime | None = Field(default=None, sa_type=UTCDateTime)
    actual_hours: float | None = Field(default=None, ge=0)


class LaborAssignmentCreate(LaborAssignmentBase, CamelModel):
    """Labor assignment creation model."""

    pass


class LaborAssignmentPublic(LaborAssignmentBase, TrackedModel, CamelModel):
    """Labor assignment public model for API responses."""

    operation_id: UUID
    status: LaborStatus
    clock_in_time: datetime | None = None
    clock_out_time: datetime | None = None
    actual_hours: float | None = None
