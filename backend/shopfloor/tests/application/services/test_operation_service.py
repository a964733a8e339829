"""
Tests for the order operation lifecycle and progress.
"""

import math
from uuid import uuid4

import pytest

from shopfloor.application.dtos import OperationUpdate
from shopfloor.domain.execution.value_objects.enums import OperationStatus
from shopfloor.domain.shared.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    InvalidQuantityError,
    InvalidTransitionError,
    ValidationError,
)
from shopfloor.infrastructure.database.models import OrderOperationCreate
from shopfloor.tests.factories import (
    OrderFactory,
    RoutingFactory,
    complete_operation,
    create_order_with_operations,
)


class TestCreateFromRouting:
    """Batch creation of operations."""

    async def test_steps_become_waiting_operations(
        self, order_service, operation_service
    ):
        order, operations = await create_order_with_operations(
            order_service, operation_service, count=3
        )

        assert [op.sequence for op in operations] == [10, 20, 30]
        assert all(op.status == OperationStatus.WAITING for op in operations)
        assert all(op.completed_quantity == 0 for op in operations)
        assert all(op.manufacturing_order_id == order.id for op in operations)

    async def test_non_contiguous_sequences_are_allowed(
        self, order_service, operation_service
    ):
        order = await order_service.create_order(OrderFactory.build())

        created = await operation_service.create_from_routing(
            order.id, [RoutingFactory.step(7), RoutingFactory.step(2)]
        )

        assert [op.sequence for op in created] == [2, 7]

    async def test_duplicate_sequence_in_batch(self, order_service, operation_service):
        order = await order_service.create_order(OrderFactory.build())

        with pytest.raises(ValidationError, match="repeat"):
            await operation_service.create_from_routing(
                order.id, [RoutingFactory.step(10), RoutingFactory.step(10)]
            )

        assert await operation_service.list_operations(order.id) == []

    async def test_sequence_clash_with_existing(self, order_service, operation_service):
        order, _ = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        with pytest.raises(ValidationError, match="already used"):
            await operation_service.create_from_routing(
                order.id, [RoutingFactory.step(20)]
            )

    async def test_order_must_exist(self, operation_service):
        with pytest.raises(EntityNotFoundError):
            await operation_service.create_from_routing(
                uuid4(), [RoutingFactory.step(10)]
            )


class TestOperationTransitions:
    """Operation status machine."""

    async def test_start_stamp_is_not_overwritten(
        self, order_service, operation_service, clock
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )

        started = await operation_service.transition_status(
            operation.id, OperationStatus.IN_PROGRESS
        )
        first_start = started.actual_start_time
        clock.advance(600)
        await operation_service.transition_status(operation.id, OperationStatus.BLOCKED)
        clock.advance(600)
        resumed = await operation_service.transition_status(
            operation.id, OperationStatus.IN_PROGRESS
        )

        assert first_start is not None
        assert resumed.actual_start_time == first_start

    async def test_completion_forces_quantity_up(self, order_service, operation_service):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )
        await operation_service.transition_status(
            operation.id, OperationStatus.IN_PROGRESS
        )
        await operation_service.update_quantity(operation.id, 40)

        completed = await operation_service.transition_status(
            operation.id, OperationStatus.COMPLETED
        )

        assert completed.completed_quantity == completed.planned_quantity
        assert completed.actual_end_time is not None

    async def test_illegal_edge_leaves_operation_unchanged(
        self, order_service, operation_service
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )

        with pytest.raises(InvalidTransitionError):
            await operation_service.transition_status(
                operation.id, OperationStatus.COMPLETED
            )

        fresh = await operation_service.get_operation(operation.id)
        assert fresh.status == OperationStatus.WAITING
        assert fresh.actual_end_time is None

    async def test_completed_is_terminal(self, order_service, operation_service):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )
        await complete_operation(operation_service, operation.id)

        with pytest.raises(InvalidTransitionError):
            await operation_service.transition_status(
                operation.id, OperationStatus.IN_PROGRESS
            )


class TestQuantityUpdates:
    """Completed quantity reporting."""

    @pytest.mark.parametrize("quantity", [-1, 100.5, 101, math.nan, math.inf])
    async def test_out_of_range_quantity(
        self, order_service, operation_service, quantity
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )

        with pytest.raises(InvalidQuantityError):
            await operation_service.update_quantity(operation.id, quantity)

        fresh = await operation_service.get_operation(operation.id)
        assert fresh.completed_quantity == 0
        assert fresh.version == 1

    async def test_reaching_plan_in_progress_auto_completes(
        self, order_service, operation_service, clock
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )
        await operation_service.transition_status(
            operation.id, OperationStatus.IN_PROGRESS
        )
        clock.advance(1800)

        updated = await operation_service.update_quantity(operation.id, 100)

        assert updated.status == OperationStatus.COMPLETED
        assert updated.actual_end_time == clock.now()

    async def test_reaching_plan_while_waiting_does_not_complete(
        self, order_service, operation_service
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )

        updated = await operation_service.update_quantity(operation.id, 100)

        assert updated.status == OperationStatus.WAITING
        assert updated.completed_quantity == 100
        assert updated.actual_end_time is None

    async def test_partial_quantity_bumps_version(
        self, order_service, operation_service
    ):
        _, (operation, *_) = await create_order_with_operations(
            order_service, operation_service
        )

        updated = await operation_service.update_quantity(operation.id, 25)

        assert updated.completed_quantity == 25
        assert updated.version == 2


class TestProgress:
    """Order progress from operation states."""

    async def test_half_done_order(self, order_service, operation_service):
        order, operations = await create_order_with_operations(
            order_service, operation_service, count=4
        )
        for operation in operations[:2]:
            await complete_operation(operation_service, operation.id)

        progress = await operation_service.get_progress(order.id)

        assert progress.overall_progress == 50
        assert progress.completed_operations == 2
        assert progress.waiting_operations == 2
        assert progress.current_operation.id == operations[2].id

    async def test_order_without_operations(self, order_service, operation_service):
        order = await order_service.create_order(OrderFactory.build())

        progress = await operation_service.get_progress(order.id)

        assert progress.total_operations == 0
        assert progress.overall_progress == 0
        assert progress.current_operation is None

    async def test_progress_of_missing_order(self, operation_service):
        with pytest.raises(EntityNotFoundError):
            await operation_service.get_progress(uuid4())


class TestSingleOperation:
    """Adding, editing and searching individual operations."""

    async def test_create_operation(self, order_service, operation_service):
        order, _ = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        operation = await operation_service.create_operation(
            OrderOperationCreate(
                **RoutingFactory.step(50).model_dump(), manufacturing_order_id=order.id
            )
        )

        assert operation.sequence == 50
        assert operation.status == OperationStatus.WAITING
        assert operation.completed_quantity == 0
        listed = await operation_service.list_operations(order.id)
        assert [op.sequence for op in listed] == [10, 20, 50]

    async def test_create_operation_with_taken_sequence(
        self, order_service, operation_service
    ):
        order, _ = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        with pytest.raises(ValidationError, match="already used"):
            await operation_service.create_operation(
                OrderOperationCreate(
                    **RoutingFactory.step(20).model_dump(),
                    manufacturing_order_id=order.id,
                )
            )

    async def test_update_fields(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        updated = await operation_service.update_operation(
            operations[0].id,
            OperationUpdate(operation_code="DEBURR", sequence=15, planned_quantity=80),
        )

        assert updated.operation_code == "DEBURR"
        assert updated.sequence == 15
        assert updated.planned_quantity == 80
        assert updated.work_center_id == operations[0].work_center_id
        assert updated.version == 2

    async def test_update_to_taken_sequence(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        with pytest.raises(ValidationError, match="already used"):
            await operation_service.update_operation(
                operations[0].id, OperationUpdate(sequence=20)
            )

    async def test_keeping_own_sequence_is_allowed(
        self, order_service, operation_service
    ):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=2
        )

        updated = await operation_service.update_operation(
            operations[0].id, OperationUpdate(sequence=10, operation_code="FACE")
        )

        assert updated.sequence == 10
        assert updated.operation_code == "FACE"

    async def test_planned_quantity_below_completed(
        self, order_service, operation_service
    ):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.update_quantity(operations[0].id, 60)

        with pytest.raises(ValidationError, match="completed quantity"):
            await operation_service.update_operation(
                operations[0].id, OperationUpdate(planned_quantity=50)
            )

    async def test_required_field_cannot_be_nulled(
        self, order_service, operation_service
    ):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )

        with pytest.raises(ValidationError, match="operation_code"):
            await operation_service.update_operation(
                operations[0].id, OperationUpdate(operation_code=None)
            )

    async def test_update_with_stale_version(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.update_quantity(operations[0].id, 10)

        with pytest.raises(ConcurrencyConflictError):
            await operation_service.update_operation(
                operations[0].id,
                OperationUpdate(operation_code="X", expected_version=1),
            )

    async def test_search_by_status_and_work_center(
        self, order_service, operation_service
    ):
        order, operations = await create_order_with_operations(
            order_service, operation_service, count=3
        )
        await operation_service.transition_status(
            operations[1].id, OperationStatus.IN_PROGRESS
        )

        running = await operation_service.search_operations(
            order_id=order.id, status=OperationStatus.IN_PROGRESS
        )
        at_center = await operation_service.search_operations(
            work_center_id=operations[2].work_center_id
        )

        assert [op.id for op in running.data] == [operations[1].id]
        assert [op.id for op in at_center.data] == [operations[2].id]

    async def test_search_pages_in_sequence_order(
        self, order_service, operation_service
    ):
        order, _ = await create_order_with_operations(
            order_service, operation_service, count=5
        )

        page = await operation_service.search_operations(
            order_id=order.id, page=2, limit=2
        )

        assert [op.sequence for op in page.data] == [30, 40]
        assert page.pagination.total == 5
        assert page.pagination.has_next


class TestDeletedOperations:
    """Soft-deleted operations leave every later query and write."""

    async def test_transition_after_delete(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.delete_operation(operations[0].id)

        with pytest.raises(EntityNotFoundError):
            await operation_service.transition_status(
                operations[0].id, OperationStatus.IN_PROGRESS
            )

    async def test_quantity_after_delete(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.delete_operation(operations[0].id)

        with pytest.raises(EntityNotFoundError):
            await operation_service.update_quantity(operations[0].id, 10)

    async def test_edit_after_delete(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.delete_operation(operations[0].id)

        with pytest.raises(EntityNotFoundError):
            await operation_service.update_operation(
                operations[0].id, OperationUpdate(operation_code="X")
            )

    async def test_second_delete(self, order_service, operation_service):
        _, operations = await create_order_with_operations(
            order_service, operation_service, count=1
        )
        await operation_service.delete_operation(operations[0].id)

        with pytest.raises(EntityNotFoundError):
            await operation_service.delete_operation(operations[0].id)

    async def test_progress_ignores_deleted(self, order_service, operation_service):
        order, operations = await create_order_with_operations(
            order_service, operation_service, count=2
        )
        await complete_operation(operation_service, operations[0].id)
        await operation_service.delete_operation(operations[1].id)

        progress = await operation_service.get_progress(order.id)

        assert progress.total_operations == 1
        assert progress.completed_operations == 1
        assert progress.overall_progress == 100

    async def test_deleted_sequence_stays_reserved(
        self, order_service, operation_service
    ):
        order, operations = await create_order_with_operations(
            order_service, operation_service, count=2
        )
        await operation_service.delete_operation(operations[1].id)

        with pytest.raises(ValidationError, match="already used"):
            await operation_service.create_from_routing(
                order.id, [RoutingFactory.step(20)]
            )
