"""
Request and response DTOs for the execution API.
"""

from .execution_dtos import (
    LaborAction,
    OperationPageResponse,
    OperationStatusUpdate,
    OperationUpdate,
    OrderPageResponse,
    OrderStatusUpdate,
    OrderUpdate,
    QualityCheckPageResponse,
    QualityResultRecord,
    QualityStatusUpdate,
    QualityTemplatesRequest,
    QuantityUpdate,
    RoutingRequest,
    SecondCheckRecord,
    VersionedRequest,
)

__all__ = [
    "LaborAction",
    "OperationPageResponse",
    "OperationStatusUpdate",
    "OperationUpdate",
    "OrderPageResponse",
    "OrderStatusUpdate",
    "OrderUpdate",
    "QualityCheckPageResponse",
    "QualityResultRecord",
    "QualityStatusUpdate",
    "QualityTemplatesRequest",
    "QuantityUpdate",
    "RoutingRequest",
    "SecondCheckRecord",
    "VersionedRequest",
]
