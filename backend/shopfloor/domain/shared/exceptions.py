"""
Domain Exceptions

Typed failures raised by the execution lifecycle managers. Each error carries
an ``ErrorType`` discriminator and serializes with ``to_dict`` for API
responses.
"""

from enum import Enum
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    REPOSITORY = "repository"
    CONCURRENCY = "concurrency"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | float | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input fields are malformed or out of range."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        super().__init__(
            f"Validation failed for field '{field_name}': {message}",
            ErrorType.VALIDATION,
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
                "error_code": self.error_code,
            },
        )


class InvalidQuantityError(ValidationError):
    """Raised when a completed quantity falls outside ``[0, planned]``."""

    def __init__(self, quantity: float, planned_quantity: float) -> None:
        self.quantity = quantity
        self.planned_quantity = planned_quantity
        super().__init__(
            "completed_quantity",
            quantity,
            f"Completed quantity must be between 0 and {planned_quantity}",
            "INVALID_QUANTITY",
        )
        self.details["planned_quantity"] = planned_quantity


class BusinessRuleViolation(DomainError):
    """Raised when a business rule is violated."""

    def __init__(
        self,
        rule_name: str,
        message: str,
        details: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        super().__init__(
            f"Business rule '{rule_name}' violated: {message}",
            ErrorType.BUSINESS_RULE,
            details,
        )
        self.rule_name = rule_name


class InvalidTransitionError(BusinessRuleViolation):
    """Raised when a status change is not a permitted edge."""

    def __init__(self, entity: str, current_status: str, requested_status: str) -> None:
        self.entity = entity
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            "INVALID_STATUS_TRANSITION",
            f"Invalid {entity} status transition from "
            f"{current_status} to {requested_status}",
            {
                "entity": entity,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class EntityNotFoundError(DomainError):
    """Raised when a referenced entity is missing or soft-deleted."""

    def __init__(self, entity: str, entity_id: UUID | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} with ID {entity_id} not found",
            ErrorType.NOT_FOUND,
            {"entity_type": entity, "entity_id": str(entity_id)},
        )


class ConcurrencyConflictError(DomainError):
    """Raised when a conditional write finds the row at another version."""

    def __init__(self, entity: str, entity_id: UUID, expected_version: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})",
            ErrorType.CONCURRENCY,
            {
                "entity_type": entity,
                "entity_id": str(entity_id),
                "expected_version": expected_version,
            },
        )


class DatabaseError(DomainError):
    """Raised when the backing store fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.REPOSITORY)
