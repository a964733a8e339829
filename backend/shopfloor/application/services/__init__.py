"""
Application services for shopfloor execution tracking.
"""

from .base_service import ApplicationServiceBase
from .execution_summary_service import ExecutionSummaryService
from .labor_service import LaborService
from .operation_service import OperationService
from .order_service import OrderService
from .quality_service import QualityService

__all__ = [
    "ApplicationServiceBase",
    "ExecutionSummaryService",
    "LaborService",
    "OperationService",
    "OrderService",
    "QualityService",
]
