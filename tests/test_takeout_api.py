from datetime import datetime
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from backoffice.api import dependencies
from backoffice.main import app
from backoffice.services.counters import (
    CounterStoreError,
    InMemoryCounterStore,
    SequenceCounter,
)


class FakeBackofficeDAO:
    def __init__(self) -> None:
        self.inserted: List[Dict[str, Any]] = []

    async def insert_takeout_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.inserted.append(body)
        return {**body, "id": f"order-{len(self.inserted)}", "created_at": "2024-07-26T12:00:00+00:00"}


class BrokenStore:
    async def increment(self, partition, tenant_id, day):
        raise CounterStoreError("store offline")


async def _no_sleep(_delay: float) -> None:
    return None


def _fixed_clock() -> datetime:
    return datetime(2024, 7, 26, 9, 30)


@pytest.fixture(name="fake_dao")
def fake_dao_fixture():
    return FakeBackofficeDAO()


@pytest.fixture(name="api_client")
def client_fixture(fake_dao):
    counter = SequenceCounter(InMemoryCounterStore(), clock=_fixed_clock, sleep=_no_sleep)

    async def override_dao():
        return fake_dao

    app.dependency_overrides[dependencies.get_sequence_counter] = lambda: counter
    app.dependency_overrides[dependencies.get_backoffice_dao] = override_dao

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_issue_takeout_ids_in_sequence(api_client: TestClient) -> None:
    first = api_client.post("/api/restaurants/r1/takeout-ids", params={"partition": "prod"})
    second = api_client.post("/api/restaurants/r1/takeout-ids", params={"partition": "prod"})
    other = api_client.post("/api/restaurants/r2/takeout-ids", params={"partition": "prod"})

    assert first.status_code == 200
    assert first.json() == {"takeout_id": "00001-20240726", "restaurant_id": "r1", "partition": "prod"}
    assert second.json()["takeout_id"] == "00002-20240726"
    assert other.json()["takeout_id"] == "00001-20240726"


def test_trial_partition_counts_separately(api_client: TestClient) -> None:
    api_client.post("/api/restaurants/r1/takeout-ids")
    response = api_client.post("/api/restaurants/r1/takeout-ids", params={"partition": "trial"})

    assert response.json() == {"takeout_id": "00001-20240726", "restaurant_id": "r1", "partition": "trial"}


def test_unknown_partition_returns_400(api_client: TestClient) -> None:
    response = api_client.post("/api/restaurants/r1/takeout-ids", params={"partition": "staging"})
    assert response.status_code == 400


def test_create_takeout_order_embeds_the_takeout_id(api_client: TestClient, fake_dao: FakeBackofficeDAO) -> None:
    response = api_client.post(
        "/api/restaurants/r1/takeout-orders",
        json={
            "customer_name": "Ana",
            "items": [
                {"id": "taco", "name": "Taco al pastor", "quantity": 3, "price": 25.5},
                {"id": "agua", "name": "Agua de jamaica", "quantity": 1, "price": 30},
            ],
        },
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["takeout_id"] == "00001-20240726"
    assert payload["status"] == "pending"
    assert payload["type"] == "takeout"
    assert payload["subtotal"] == pytest.approx(106.5)
    assert payload["id"] == "order-1"
    assert fake_dao.inserted[0]["partition"] == "prod"
    assert fake_dao.inserted[0]["items"][0]["name"] == "Taco al pastor"


def test_order_is_not_written_without_a_takeout_id(fake_dao: FakeBackofficeDAO) -> None:
    counter = SequenceCounter(BrokenStore(), clock=_fixed_clock, max_attempts=2, sleep=_no_sleep)

    async def override_dao():
        return fake_dao

    app.dependency_overrides[dependencies.get_sequence_counter] = lambda: counter
    app.dependency_overrides[dependencies.get_backoffice_dao] = override_dao
    try:
        with TestClient(app) as client:
            id_response = client.post("/api/restaurants/r1/takeout-ids")
            order_response = client.post("/api/restaurants/r1/takeout-orders", json={"items": []})
    finally:
        app.dependency_overrides.clear()

    assert id_response.status_code == 503
    assert order_response.status_code == 503
    assert fake_dao.inserted == []


def test_health_reports_status(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
