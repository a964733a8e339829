"""
Execution metrics.

Pure functions folding execution rows into summaries. Inputs are any objects
exposing the row attributes (ORM rows in production, simple stand-ins in
tests); nothing here touches the store or the clock.
"""

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

from shopfloor.domain.shared.clock import ensure_utc

from ..value_objects.enums import (
    OperationStatus,
    QualityCheckResult,
    QualityCheckStatus,
    QualityOverallStatus,
)
from ..value_objects.summaries import (
    LaborSummary,
    OperationProgress,
    OperationSnapshot,
    QualitySummary,
)

SECONDS_PER_HOUR = 3600.0
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def percentage(part: float, whole: float) -> int:
    """Integer percentage of ``part`` in ``whole``, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(100.0 * part / whole)


def worked_hours(clock_in: datetime | None, clock_out: datetime) -> float | None:
    """Hours between clock in and clock out, None if never clocked in."""
    if clock_in is None:
        return None
    elapsed = ensure_utc(clock_out) - ensure_utc(clock_in)
    return elapsed.total_seconds() / SECONDS_PER_HOUR


def order_operations(operations: Iterable[Any]) -> list[Any]:
    """Sort operations by sequence, breaking ties by creation time."""
    return sorted(
        operations,
        key=lambda op: (op.sequence, ensure_utc(op.created_at) or _EPOCH),
    )


def compute_operation_progress(operations: Sequence[Any]) -> OperationProgress:
    """Bucket an order's operations by status and find the current step.

    The current operation is the first one, in sequence order, that is not
    COMPLETED.
    """
    ordered = order_operations(operations)
    counts = Counter(OperationStatus(op.status) for op in ordered)
    total = len(ordered)
    completed = counts[OperationStatus.COMPLETED]

    current = next(
        (op for op in ordered if op.status != OperationStatus.COMPLETED), None
    )

    return OperationProgress(
        total_operations=total,
        completed_operations=completed,
        in_progress_operations=counts[OperationStatus.IN_PROGRESS],
        waiting_operations=counts[OperationStatus.WAITING],
        blocked_operations=counts[OperationStatus.BLOCKED],
        overall_progress=percentage(completed, total),
        current_operation=(
            OperationSnapshot.model_validate(current) if current is not None else None
        ),
    )


def derive_overall_quality_status(
    counts: Counter, total: int
) -> QualityOverallStatus:
    """Roll check statuses up into one status, in priority order."""
    if total == 0:
        return QualityOverallStatus.PENDING
    if counts[QualityCheckStatus.FAILED]:
        return QualityOverallStatus.FAILED
    if counts[QualityCheckStatus.IN_PROGRESS]:
        return QualityOverallStatus.IN_PROGRESS
    if counts[QualityCheckStatus.PENDING]:
        return QualityOverallStatus.PENDING

    passed = counts[QualityCheckStatus.PASSED]
    if passed == total or passed + counts[QualityCheckStatus.SKIPPED] == total:
        return QualityOverallStatus.PASSED
    return QualityOverallStatus.MIXED


def compute_quality_summary(checks: Sequence[Any]) -> QualitySummary:
    counts = Counter(QualityCheckStatus(check.status) for check in checks)
    total = len(checks)
    passed = counts[QualityCheckStatus.PASSED]
    failed = counts[QualityCheckStatus.FAILED]

    critical_failures = sum(
        1
        for check in checks
        if check.is_required and check.result == QualityCheckResult.FAIL
    )

    return QualitySummary(
        total_checks=total,
        pending_checks=counts[QualityCheckStatus.PENDING],
        in_progress_checks=counts[QualityCheckStatus.IN_PROGRESS],
        passed_checks=passed,
        failed_checks=failed,
        skipped_checks=counts[QualityCheckStatus.SKIPPED],
        overall_status=derive_overall_quality_status(counts, total),
        # skipped checks stay out of the denominator
        first_pass_yield=percentage(passed, passed + failed),
        critical_failures=critical_failures,
    )


def assignment_efficiency(
    planned_hours: float | None, actual_hours: float | None
) -> float | None:
    """Efficiency percentage of one assignment.

    Unplanned work counts as 100. Planned work with no recorded hours yet has
    no efficiency and returns None.
    """
    if not planned_hours:
        return 100.0
    if actual_hours is None:
        return None
    return actual_hours / planned_hours * 100.0


def compute_labor_summary(assignments: Sequence[Any]) -> LaborSummary:
    total_hours = 0.0
    total_cost = 0.0
    efficiencies: list[float] = []

    for assignment in assignments:
        hours = assignment.actual_hours or 0.0
        total_hours += hours
        total_cost += hours * (assignment.hourly_rate or 0.0)

        efficiency = assignment_efficiency(
            assignment.planned_hours, assignment.actual_hours
        )
        if efficiency is not None:
            efficiencies.append(efficiency)

    return LaborSummary(
        total_operators=len(assignments),
        total_hours=total_hours,
        total_cost=total_cost,
        efficiency=sum(efficiencies) / len(efficiencies) if efficiencies else 0.0,
    )
