"""
Derived read models for execution progress.

These are recomputed on every read from the current rows of an order and are
never persisted.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from shopfloor.domain.shared.base import ValueObject

from .enums import OperationStatus, QualityOverallStatus


class OperationSnapshot(ValueObject):
    """The parts of an operation shown as the order's current step."""

    id: UUID
    manufacturing_order_id: UUID
    work_center_id: UUID
    operation_code: str
    sequence: int
    status: OperationStatus
    planned_quantity: float
    completed_quantity: float
    actual_start_time: datetime | None = None


class OperationProgress(ValueObject):
    total_operations: int = 0
    completed_operations: int = 0
    in_progress_operations: int = 0
    waiting_operations: int = 0
    blocked_operations: int = 0
    overall_progress: int = Field(default=0, ge=0, le=100)
    current_operation: OperationSnapshot | None = None


class QualitySummary(ValueObject):
    total_checks: int = 0
    pending_checks: int = 0
    in_progress_checks: int = 0
    passed_checks: int = 0
    failed_checks: int = 0
    skipped_checks: int = 0
    overall_status: QualityOverallStatus = QualityOverallStatus.PENDING
    first_pass_yield: int = Field(default=0, ge=0, le=100)
    critical_failures: int = 0


class LaborSummary(ValueObject):
    """Labor roll-up for one operation, or for a whole order."""

    total_operators: int = 0
    total_hours: float = 0.0
    total_cost: float = 0.0
    efficiency: float = 0.0


class OperationLaborSummary(ValueObject):
    operation_id: UUID
    sequence: int
    labor: LaborSummary


class ExecutionSummary(ValueObject):
    """Everything presentation needs to render one order's execution state."""

    order: dict[str, Any]
    progress: OperationProgress
    quality: QualitySummary
    labor_by_operation: list[OperationLaborSummary] = Field(default_factory=list)
    labor: LaborSummary
    generated_at: datetime


class OrderStatistics(ValueObject):
    total_orders: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    overdue_orders: int = 0
    average_lead_time_hours: float | None = None
