"""
Repository implementations for shopfloor execution entities.
"""

from .base import BaseRepository, Page, Pagination
from .labor_repository import LaborAssignmentRepository
from .operation_repository import OperationRepository
from .order_repository import OrderRepository
from .quality_check_repository import QualityCheckRepository

__all__ = [
    "BaseRepository",
    "Page",
    "Pagination",
    "LaborAssignmentRepository",
    "OperationRepository",
    "OrderRepository",
    "QualityCheckRepository",
]
