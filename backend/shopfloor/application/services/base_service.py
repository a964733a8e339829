"""
Base application service providing common functionality.

This module provides a base class for the execution lifecycle managers:
shared validation helpers and the load-check-write sequence every status
transition goes through.
"""

from abc import ABC
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shopfloor.application.dtos import VersionedRequest
from shopfloor.core.config import settings
from shopfloor.core.observability import (
    get_logger,
    record_rejected_transition,
    record_transition,
)
from shopfloor.domain.shared.clock import Clock, SystemClock, ensure_utc
from shopfloor.domain.shared.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from shopfloor.infrastructure.database.repositories.base import BaseRepository

logger = get_logger(__name__)

StatusType = TypeVar("StatusType", bound=Enum)


class ApplicationServiceBase(ABC):
    """
    Base class for application services.

    Services share one session per request and read "now" from the injected
    clock only.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        """
        Initialize the application service.

        Args:
            session: Async database session
            clock: Time source for every stamped timestamp
        """
        self.session = session
        self.clock = clock or SystemClock()

    def validate_enum(
        self, enum_class: type[StatusType], value: Any, field_name: str
    ) -> StatusType:
        """
        Validate and convert a value to a member of ``enum_class``.

        Raises:
            ValidationError: If the value is not a member
        """
        if isinstance(value, enum_class):
            return value
        try:
            return enum_class(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_class)
            raise ValidationError(
                field_name, value, f"Must be one of: {allowed}", "INVALID_ENUM"
            ) from None

    def page_limit(self, limit: int | None) -> int:
        return min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

    def edited_fields(
        self, request: VersionedRequest, required: frozenset[str] = frozenset()
    ) -> dict[str, Any]:
        """
        Fields the caller actually sent in an edit request.

        Raises:
            ValidationError: If a field in ``required`` is sent as null or
                nothing editable is sent
        """
        changes = request.model_dump(exclude_unset=True, exclude={"expected_version"})
        for field_name in sorted(required & changes.keys()):
            if changes[field_name] is None:
                raise ValidationError(field_name, None, "Must not be null")
        if not changes:
            raise ValidationError("body", None, "No editable fields supplied")
        return changes

    def validate_window(
        self, end_field: str, start: datetime | None, end: datetime | None
    ) -> None:
        """
        Raises:
            ValidationError: If ``end`` precedes ``start``
        """
        if start and end and ensure_utc(end) < ensure_utc(start):
            raise ValidationError(
                end_field, end.isoformat(), "Planned end must not precede planned start"
            )

    def check_transition(
        self, entity: str, current: StatusType, target: StatusType
    ) -> None:
        """
        Validate a status change against the status enum's edge table.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from ``current``
        """
        if not current.can_transition_to(target):
            record_rejected_transition(entity)
            logger.warning(
                "Rejected status transition",
                entity=entity,
                from_status=current.value,
                to_status=target.value,
            )
            raise InvalidTransitionError(entity, current.value, target.value)

    async def write(
        self,
        repository: BaseRepository,
        entity_id: UUID,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Any:
        """
        Persist changes in a single write and return the fresh row.

        Raises:
            EntityNotFoundError: If the row disappeared before the write
            ConcurrencyConflictError: If ``expected_version`` is stale
        """
        updated = await repository.update(entity_id, changes, expected_version)
        if updated is None:
            raise EntityNotFoundError(repository.entity_name, entity_id)
        return updated

    async def remove(self, repository: BaseRepository, entity_id: UUID) -> None:
        """
        Soft-delete a row; it disappears from every later query and transition.

        Raises:
            EntityNotFoundError: If the row is missing or already deleted
        """
        if not await repository.soft_delete(entity_id):
            raise EntityNotFoundError(repository.entity_name, entity_id)
        logger.info(
            "Entity deleted", entity=repository.entity_name, entity_id=str(entity_id)
        )

    def log_transition(
        self, entity: str, entity_id: UUID, from_status: Enum, to_status: Enum
    ) -> None:
        record_transition(entity, from_status.value, to_status.value)
        logger.info(
            "Status transition applied",
            entity=entity,
            entity_id=str(entity_id),
            from_status=from_status.value,
            to_status=to_status.value,
        )
