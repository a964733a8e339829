"""
Execution value objects: status enums with their transition tables and the
derived summary read models.
"""

from .enums import (
    LaborRole,
    LaborStatus,
    OperationStatus,
    OrderStatus,
    QualityCheckResult,
    QualityCheckStatus,
    QualityCheckType,
    QualityOverallStatus,
)
from .summaries import (
    ExecutionSummary,
    LaborSummary,
    OperationLaborSummary,
    OperationProgress,
    OperationSnapshot,
    OrderStatistics,
    QualitySummary,
)

__all__ = [
    "LaborRole",
    "LaborStatus",
    "OperationStatus",
    "OrderStatus",
    "QualityCheckResult",
    "QualityCheckStatus",
    "QualityCheckType",
    "QualityOverallStatus",
    "ExecutionSummary",
    "LaborSummary",
    "OperationLaborSummary",
    "OperationProgress",
    "OperationSnapshot",
    "OrderStatistics",
    "QualitySummary",
]
