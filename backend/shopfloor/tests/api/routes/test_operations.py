"""
Tests for the operation and labor assignment routes.
"""

from uuid import uuid4

import pytest

from .test_orders import API, add_routing, create_order


@pytest.fixture
async def operation(client) -> dict:
    order = await create_order(client)
    (operation,) = await add_routing(client, order["id"], sequences=(10,))
    return operation


async def set_status(client, operation_id: str, status: str):
    return await client.patch(
        f"{API}/operations/{operation_id}/status", json={"status": status}
    )


class TestOperationStatus:
    async def test_start_stamps_time(self, client, operation, clock):
        response = await set_status(client, operation["id"], "IN_PROGRESS")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "IN_PROGRESS"
        assert body["actualStartTime"] is not None

    async def test_waiting_cannot_complete(self, client, operation):
        response = await set_status(client, operation["id"], "COMPLETED")

        assert response.status_code == 409

    async def test_missing_operation_is_404(self, client):
        response = await client.get(f"{API}/operations/{uuid4()}")

        assert response.status_code == 404


class TestQuantity:
    async def test_reaching_plan_completes(self, client, operation):
        await set_status(client, operation["id"], "IN_PROGRESS")

        response = await client.patch(
            f"{API}/operations/{operation['id']}/quantity",
            json={"completedQuantity": 50},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"
        assert response.json()["completedQuantity"] == 50

    async def test_partial_quantity(self, client, operation):
        await set_status(client, operation["id"], "IN_PROGRESS")

        response = await client.patch(
            f"{API}/operations/{operation['id']}/quantity",
            json={"completedQuantity": 20},
        )

        assert response.json()["status"] == "IN_PROGRESS"

    async def test_over_plan_is_422(self, client, operation):
        response = await client.patch(
            f"{API}/operations/{operation['id']}/quantity",
            json={"completedQuantity": 51},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["details"]["error_code"] == "INVALID_QUANTITY"

    async def test_nan_quantity_is_422(self, client, operation):
        response = await client.patch(
            f"{API}/operations/{operation['id']}/quantity",
            content='{"completedQuantity": NaN}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

        fresh = await client.get(f"{API}/operations/{operation['id']}")
        assert fresh.json()["completedQuantity"] == 0


class TestLaborRoutes:
    async def test_assign_clock_in_and_out(self, client, operation, clock):
        response = await client.post(
            f"{API}/operations/{operation['id']}/labor-assignments",
            json={
                "operatorId": str(uuid4()),
                "operatorName": "Sam Rivera",
                "plannedHours": 2,
                "hourlyRate": 30,
            },
        )
        assert response.status_code == 201
        assignment = response.json()
        assert assignment["status"] == "ASSIGNED"

        response = await client.post(
            f"{API}/labor-assignments/{assignment['id']}/clock-in"
        )
        assert response.json()["status"] == "ACTIVE"

        clock.advance(3600)
        response = await client.post(
            f"{API}/labor-assignments/{assignment['id']}/clock-out"
        )
        assert response.json()["status"] == "OFFLINE"
        assert response.json()["actualHours"] == pytest.approx(1.0)

        response = await client.get(
            f"{API}/operations/{operation['id']}/labor-summary"
        )
        summary = response.json()
        assert summary["totalOperators"] == 1
        assert summary["totalCost"] == pytest.approx(30.0)
        assert summary["efficiency"] == pytest.approx(50.0)

    async def test_break_with_stale_version_is_409(self, client, operation):
        response = await client.post(
            f"{API}/operations/{operation['id']}/labor-assignments",
            json={"operatorId": str(uuid4()), "operatorName": "Sam Rivera"},
        )
        assignment = response.json()
        await client.post(f"{API}/labor-assignments/{assignment['id']}/clock-in")

        response = await client.post(
            f"{API}/labor-assignments/{assignment['id']}/break/start",
            json={"expectedVersion": 1},
        )

        assert response.status_code == 409

    async def test_assign_to_missing_operation_is_404(self, client):
        response = await client.post(
            f"{API}/operations/{uuid4()}/labor-assignments",
            json={"operatorId": str(uuid4()), "operatorName": "Sam Rivera"},
        )

        assert response.status_code == 404

    async def test_operator_assignments(self, client, operation):
        operator_id = str(uuid4())
        await client.post(
            f"{API}/operations/{operation['id']}/labor-assignments",
            json={"operatorId": operator_id, "operatorName": "Sam Rivera"},
        )

        response = await client.get(f"{API}/labor-assignments/operators/{operator_id}")

        assert [a["operatorId"] for a in response.json()] == [operator_id]

    async def test_delete_assignment(self, client, operation):
        response = await client.post(
            f"{API}/operations/{operation['id']}/labor-assignments",
            json={"operatorId": str(uuid4()), "operatorName": "Sam Rivera"},
        )
        assignment = response.json()

        response = await client.delete(f"{API}/labor-assignments/{assignment['id']}")
        assert response.status_code == 204

        response = await client.post(
            f"{API}/labor-assignments/{assignment['id']}/clock-in"
        )
        assert response.status_code == 404


class TestOperationEditing:
    async def test_create_single_operation(self, client, operation):
        response = await client.post(
            f"{API}/operations/",
            json={
                "manufacturingOrderId": operation["manufacturingOrderId"],
                "workCenterId": str(uuid4()),
                "operationCode": "PACK",
                "sequence": 90,
                "plannedQuantity": 50,
            },
        )

        assert response.status_code == 201
        assert response.json()["status"] == "WAITING"
        assert response.json()["sequence"] == 90

    async def test_create_with_taken_sequence_is_422(self, client, operation):
        response = await client.post(
            f"{API}/operations/",
            json={
                "manufacturingOrderId": operation["manufacturingOrderId"],
                "workCenterId": str(uuid4()),
                "operationCode": "PACK",
                "sequence": operation["sequence"],
                "plannedQuantity": 50,
            },
        )

        assert response.status_code == 422

    async def test_update_operation(self, client, operation):
        response = await client.put(
            f"{API}/operations/{operation['id']}",
            json={"operationCode": "DEBURR", "expectedVersion": 1},
        )

        assert response.status_code == 200
        assert response.json()["operationCode"] == "DEBURR"
        assert response.json()["version"] == 2

    async def test_delete_operation(self, client, operation):
        response = await client.delete(f"{API}/operations/{operation['id']}")
        assert response.status_code == 204

        response = await client.get(f"{API}/operations/{operation['id']}")
        assert response.status_code == 404

        response = await set_status(client, operation["id"], "IN_PROGRESS")
        assert response.status_code == 404

    async def test_list_by_order(self, client):
        order = await create_order(client)
        await add_routing(client, order["id"], sequences=(10, 20, 30))
        other = await create_order(client)
        await add_routing(client, other["id"], sequences=(10,))

        response = await client.get(
            f"{API}/operations/",
            params={"manufacturingOrderId": order["id"], "limit": 2},
        )

        assert response.status_code == 200
        body = response.json()
        assert [op["sequence"] for op in body["data"]] == [10, 20]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["hasNext"] is True
