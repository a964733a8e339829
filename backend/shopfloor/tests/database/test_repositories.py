"""
Integration tests for the entity store repositories on SQLite.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from shopfloor.domain.execution.value_objects.enums import OrderStatus
from shopfloor.domain.shared.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    ValidationError,
)
from shopfloor.infrastructure.database.repositories import (
    OperationRepository,
    OrderRepository,
)
from shopfloor.tests.factories import OrderFactory, RoutingFactory


def order_fields(**overrides):
    data = OrderFactory.build().model_dump(exclude={"order_number"})
    data.update(order_number=f"MO-TEST-{uuid4().hex[:8]}")
    data.update(overrides)
    return data


@pytest.fixture
def orders(session, clock) -> OrderRepository:
    return OrderRepository(session, clock)


@pytest.fixture
def operations(session, clock) -> OperationRepository:
    return OperationRepository(session, clock)


class TestCreateAndFind:
    """Basic create/read behaviour."""

    async def test_create_starts_at_version_one(self, orders, clock):
        order = await orders.create(order_fields())

        assert order.version == 1
        assert order.is_active
        assert order.created_at == clock.now()
        assert order.status == OrderStatus.PLANNED

    async def test_find_by_id_missing_returns_none(self, orders):
        assert await orders.find_by_id(uuid4()) is None

    async def test_get_by_id_required_raises(self, orders):
        with pytest.raises(EntityNotFoundError):
            await orders.get_by_id_required(uuid4())

    async def test_duplicate_order_number_is_rejected(self, orders):
        await orders.create(order_fields(order_number="MO-DUP"))

        with pytest.raises(ValidationError):
            await orders.create(order_fields(order_number="MO-DUP"))

    async def test_create_accepts_camel_case_keys(self, orders):
        order = await orders.create(
            {
                "orderNumber": "MO-CAMEL",
                "productId": uuid4(),
                "quantity": 5,
            }
        )

        assert order.order_number == "MO-CAMEL"


class TestUpdate:
    """Versioned writes."""

    async def test_update_increments_version_and_timestamp(self, orders, clock):
        order = await orders.create(order_fields())
        clock.advance(60)

        updated = await orders.update(order.id, {"notes": "rush"})

        assert updated.version == 2
        assert updated.notes == "rush"
        assert updated.updated_at == clock.now()

    async def test_protected_fields_are_ignored(self, orders):
        order = await orders.create(order_fields())

        updated = await orders.update(order.id, {"version": 99, "notes": "x"})

        assert updated.version == 2

    async def test_stale_expected_version_conflicts(self, orders):
        order = await orders.create(order_fields())
        await orders.update(order.id, {"notes": "first"})

        with pytest.raises(ConcurrencyConflictError):
            await orders.update(order.id, {"notes": "second"}, expected_version=1)

        fresh = await orders.get_by_id_required(order.id)
        assert fresh.notes == "first"
        assert fresh.version == 2

    async def test_matching_expected_version_applies(self, orders):
        order = await orders.create(order_fields())

        updated = await orders.update(order.id, {"notes": "ok"}, expected_version=1)

        assert updated.version == 2

    async def test_update_missing_returns_none(self, orders):
        assert await orders.update(uuid4(), {"notes": "x"}) is None

    async def test_unknown_field_is_rejected(self, orders):
        order = await orders.create(order_fields())

        with pytest.raises(ValidationError):
            await orders.update(order.id, {"colour": "red"})


class TestSoftDelete:
    """Soft-deleted rows vanish from every query."""

    async def test_soft_deleted_row_is_invisible(self, orders):
        order = await orders.create(order_fields())

        assert await orders.soft_delete(order.id)

        assert await orders.find_by_id(order.id) is None
        assert not await orders.exists(order.id)
        assert await orders.update(order.id, {"notes": "x"}) is None
        page = await orders.find_many()
        assert page.pagination.total == 0

    async def test_soft_delete_twice(self, orders):
        order = await orders.create(order_fields())
        await orders.soft_delete(order.id)

        assert not await orders.soft_delete(order.id)


class TestFindMany:
    """Pagination and filters."""

    async def test_pagination_metadata(self, orders, clock):
        for _ in range(5):
            await orders.create(order_fields())
            clock.advance(1)

        page = await orders.find_many(page=2, limit=2)

        assert len(page.data) == 2
        assert page.pagination.total == 5
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next
        assert page.pagination.has_prev

    async def test_filter_by_camel_case_field(self, orders):
        product_id = uuid4()
        await orders.create(order_fields(product_id=product_id))
        await orders.create(order_fields())

        page = await orders.find_many({"productId": product_id})

        assert [o.product_id for o in page.data] == [product_id]

    async def test_sort_ascending(self, orders):
        await orders.create(order_fields(priority=9))
        await orders.create(order_fields(priority=2))

        page = await orders.find_many(sort_by="priority", descending=False)

        assert [o.priority for o in page.data] == [2, 9]

    async def test_invalid_page(self, orders):
        with pytest.raises(ValidationError):
            await orders.find_many(page=0)


class TestOrderQueries:
    """Order-specific queries."""

    async def test_next_order_number_follows_existing(self, orders):
        assert await orders.next_order_number(2024) == "MO-2024-000001"

        await orders.create(order_fields(order_number="MO-2024-000001"))

        assert await orders.next_order_number(2024) == "MO-2024-000002"
        assert await orders.next_order_number(2025) == "MO-2025-000001"

    async def test_next_order_number_skips_supplied_numbers(self, orders):
        await orders.create(order_fields(order_number="MO-2024-000007"))
        await orders.create(order_fields(order_number="MO-2024-RUSH"))

        assert await orders.next_order_number(2024) == "MO-2024-000008"

    async def test_deleted_orders_keep_their_numbers(self, orders):
        order = await orders.create(order_fields(order_number="MO-2024-000003"))
        await orders.soft_delete(order.id)

        assert await orders.next_order_number(2024) == "MO-2024-000004"

    async def test_statistics(self, orders, clock):
        now = clock.now()
        overdue = await orders.create(
            order_fields(planned_end_date=now - timedelta(days=1))
        )
        done = await orders.create(
            order_fields(planned_end_date=now - timedelta(days=1))
        )
        await orders.update(
            done.id,
            {
                "status": OrderStatus.COMPLETED,
                "actual_start_date": now - timedelta(hours=10),
                "actual_end_date": now - timedelta(hours=4),
            },
        )

        stats = await orders.get_statistics(now)

        assert stats.total_orders == 2
        assert stats.by_status["PLANNED"] == 1
        assert stats.by_status["COMPLETED"] == 1
        assert stats.overdue_orders == 1
        assert stats.average_lead_time_hours == pytest.approx(6.0)
        assert overdue.status == OrderStatus.PLANNED


class TestOperationQueries:
    async def test_operations_ordered_by_sequence(self, orders, operations):
        order = await orders.create(order_fields())
        for step in (RoutingFactory.step(30), RoutingFactory.step(10)):
            await operations.create(
                {**step.model_dump(), "manufacturing_order_id": order.id}
            )

        rows = await operations.find_by_order_id(order.id)

        assert [op.sequence for op in rows] == [10, 30]

    async def test_sequence_is_unique_per_order(self, orders, operations):
        order = await orders.create(order_fields())
        step = RoutingFactory.step(10)
        await operations.create({**step.model_dump(), "manufacturing_order_id": order.id})

        with pytest.raises(ValidationError):
            await operations.create(
                {**step.model_dump(), "manufacturing_order_id": order.id}
            )

