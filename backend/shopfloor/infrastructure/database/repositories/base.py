"""
Base repository implementation providing generic async CRUD operations.

This module provides a generic base repository class implementing the entity
store contract over an SQLAlchemy ``AsyncSession``. Every query excludes
soft-deleted rows, every write bumps ``version`` and ``updated_at``, and
SQLAlchemy failures surface as ``DatabaseError``. Concrete repositories extend
this class with entity-specific queries.
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_snake
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from shopfloor.core.observability import get_logger, record_store_operation
from shopfloor.domain.shared.clock import Clock, SystemClock
from shopfloor.domain.shared.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    EntityNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

# Type variables for generic repository
EntityType = TypeVar("EntityType", bound=SQLModel)
CreateType = TypeVar("CreateType", bound=SQLModel)

# Columns callers may never set directly
PROTECTED_FIELDS = frozenset({"id", "version", "created_at", "updated_at", "is_active"})


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class Page(BaseModel, Generic[EntityType]):
    """One page of rows plus its pagination metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: list[EntityType]
    pagination: Pagination


class BaseRepository(Generic[EntityType, CreateType], ABC):
    """
    Base repository class providing generic CRUD operations.

    Concrete repositories provide the ``entity_class`` property and may add
    finder methods built on ``_find_where``.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            clock: Source of ``created_at``/``updated_at`` timestamps
        """
        self.session = session
        self.clock = clock or SystemClock()

    @property
    @abstractmethod
    def entity_class(self) -> type[EntityType]:
        """Return the SQLModel entity class managed by this repository."""
        pass

    @property
    def entity_name(self) -> str:
        return self.entity_class.__name__

    @property
    def table_name(self) -> str:
        return self.entity_class.__tablename__

    def _column(self, field_name: str) -> Any:
        """Resolve a snake_case or camelCase field name to a mapped column."""
        column_name = to_snake(field_name)
        if column_name not in self.entity_class.model_fields:
            raise ValidationError(
                field_name,
                field_name,
                f"Unknown field for {self.entity_name}",
                "UNKNOWN_FIELD",
            )
        return getattr(self.entity_class, column_name)

    def _active(self):
        return select(self.entity_class).where(self.entity_class.is_active.is_(True))

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed", table=self.table_name, exc_info=True)

    async def _find_where(self, *conditions: Any, order_by: Any = None) -> list[EntityType]:
        """
        Return active rows matching all conditions.

        Args:
            conditions: SQLAlchemy column expressions
            order_by: Optional ordering expression or tuple of expressions

        Raises:
            DatabaseError: If database operation fails
        """
        statement = self._active().where(*conditions)
        if order_by is not None:
            if not isinstance(order_by, tuple):
                order_by = (order_by,)
            statement = statement.order_by(*order_by)
        try:
            result = await self.session.execute(
                statement.execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during find: {e}") from e
        record_store_operation("find", self.table_name)
        return list(result.scalars().all())

    async def find_by_id(self, entity_id: UUID) -> EntityType | None:
        """
        Get an active entity by ID.

        Args:
            entity_id: UUID of the entity

        Returns:
            Entity if found and not soft-deleted, None otherwise

        Raises:
            DatabaseError: If database operation fails
        """
        statement = self._active().where(self.entity_class.id == entity_id)
        try:
            result = await self.session.execute(
                statement.execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during find_by_id: {e}") from e
        record_store_operation("find_by_id", self.table_name)
        return result.scalars().first()

    async def get_by_id_required(self, entity_id: UUID) -> EntityType:
        """
        Get entity by ID, raising exception if not found.

        Raises:
            EntityNotFoundError: If entity is missing or soft-deleted
            DatabaseError: If database operation fails
        """
        entity = await self.find_by_id(entity_id)
        if entity is None:
            raise EntityNotFoundError(self.entity_name, entity_id)
        return entity

    async def exists(self, entity_id: UUID) -> bool:
        return await self.find_by_id(entity_id) is not None

    async def find_many(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        limit: int = 50,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Page[EntityType]:
        """
        Get a page of active entities.

        Args:
            filters: Equality filters keyed by field name (either case);
                ``None`` values are ignored
            page: 1-based page number
            limit: Page size
            sort_by: Field to sort by
            descending: Sort direction

        Returns:
            Page with rows and pagination metadata

        Raises:
            ValidationError: If a filter or sort field is unknown, or the page
                bounds are invalid
            DatabaseError: If database operation fails
        """
        if page < 1:
            raise ValidationError("page", page, "Page must be at least 1")
        if limit < 1:
            raise ValidationError("limit", limit, "Limit must be at least 1")

        conditions = [
            self._column(name) == value
            for name, value in (filters or {}).items()
            if value is not None
        ]
        sort_column = self._column(sort_by)
        ordering = sort_column.desc() if descending else sort_column.asc()

        statement = self._active().where(*conditions)
        count_statement = select(func.count()).select_from(statement.subquery())

        try:
            total = (await self.session.execute(count_statement)).scalar_one()
            result = await self.session.execute(
                statement.order_by(ordering, self.entity_class.id)
                .offset((page - 1) * limit)
                .limit(limit)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database error during find_many: {e}") from e

        record_store_operation("find_many", self.table_name)
        return Page(
            data=list(result.scalars().all()),
            pagination=Pagination.build(page, limit, total),
        )

    async def create(self, entity_data: CreateType | Mapping[str, Any]) -> EntityType:
        """
        Create a new entity.

        Args:
            entity_data: Field values, as a model or a mapping (either case)

        Returns:
            Created entity at version 1

        Raises:
            ValidationError: If a unique or check constraint is violated
            DatabaseError: If database operation fails
        """
        entity = self._build(entity_data)
        self.session.add(entity)
        try:
            await self.session.commit()
            await self.session.refresh(entity)
        except IntegrityError as e:
            await self._rollback()
            raise ValidationError(
                self.table_name,
                None,
                f"Constraint violated on create: {e.orig}",
                "CONSTRAINT_VIOLATION",
            ) from e
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError(f"Database error during create: {e}") from e

        record_store_operation("create", self.table_name)
        logger.debug("Entity created", table=self.table_name, entity_id=str(entity.id))
        return entity

    async def bulk_create(
        self, entities_data: list[CreateType | Mapping[str, Any]]
    ) -> list[EntityType]:
        """
        Create several entities in one transaction.

        Raises:
            ValidationError: If a unique or check constraint is violated
            DatabaseError: If database operation fails
        """
        entities = [self._build(data) for data in entities_data]
        self.session.add_all(entities)
        try:
            await self.session.commit()
            for entity in entities:
                await self.session.refresh(entity)
        except IntegrityError as e:
            await self._rollback()
            raise ValidationError(
                self.table_name,
                None,
                f"Constraint violated on bulk create: {e.orig}",
                "CONSTRAINT_VIOLATION",
            ) from e
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError(f"Database error during bulk_create: {e}") from e

        record_store_operation("bulk_create", self.table_name)
        return entities

    async def update(
        self,
        entity_id: UUID,
        update_data: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> EntityType | None:
        """
        Update an active entity in a single conditional write.

        The write bumps ``version`` and ``updated_at``. When
        ``expected_version`` is given it only applies if the stored row is
        still at that version.

        Args:
            entity_id: UUID of the entity to update
            update_data: Field values keyed by field name (either case)
            expected_version: Version the caller read, for compare-and-swap

        Returns:
            Updated entity, or None if no active row has that ID

        Raises:
            ConcurrencyConflictError: If the row moved past ``expected_version``
            DatabaseError: If database operation fails
        """
        values = self._prepare_values(update_data)
        values["version"] = self.entity_class.version + 1
        values["updated_at"] = self.clock.now()

        statement = (
            update(self.entity_class)
            .where(
                self.entity_class.id == entity_id,
                self.entity_class.is_active.is_(True),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if expected_version is not None:
            statement = statement.where(self.entity_class.version == expected_version)

        try:
            result = await self.session.execute(statement)
            if result.rowcount == 0:
                await self.session.commit()
                if expected_version is not None and await self.exists(entity_id):
                    raise ConcurrencyConflictError(
                        self.entity_name, entity_id, expected_version
                    )
                return None
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError(f"Database error during update: {e}") from e

        record_store_operation("update", self.table_name)
        return await self.find_by_id(entity_id)

    async def soft_delete(self, entity_id: UUID) -> bool:
        """
        Mark an entity inactive; it disappears from every later query.

        Returns:
            True if an active row was deleted, False otherwise

        Raises:
            DatabaseError: If database operation fails
        """
        statement = (
            update(self.entity_class)
            .where(
                self.entity_class.id == entity_id,
                self.entity_class.is_active.is_(True),
            )
            .values(
                is_active=False,
                version=self.entity_class.version + 1,
                updated_at=self.clock.now(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError(f"Database error during soft_delete: {e}") from e

        record_store_operation("soft_delete", self.table_name)
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Entity soft-deleted", table=self.table_name, entity_id=str(entity_id))
        return deleted

    def _prepare_values(self, data: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, value in data.items():
            column_name = to_snake(name)
            if column_name in PROTECTED_FIELDS:
                continue
            self._column(column_name)
            values[column_name] = value
        return values

    def _build(self, entity_data: CreateType | Mapping[str, Any]) -> EntityType:
        if isinstance(entity_data, self.entity_class):
            data = entity_data.model_dump(exclude=PROTECTED_FIELDS)
        elif isinstance(entity_data, BaseModel):
            data = entity_data.model_dump(exclude_unset=False)
        else:
            data = dict(entity_data)

        values = self._prepare_values(data)
        now = self.clock.now()
        values["created_at"] = now
        values["updated_at"] = now
        return self.entity_class.model_validate(values)
