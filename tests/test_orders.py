from __future__ import annotations

from datetime import UTC, date, datetime
from types import SimpleNamespace
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
from httpx import AsyncClient

from harvestline.models.enums import OrderStatusEnum
from harvestline.schemas.orders import OrderCreate
from harvestline.services.order_service import OrderService
from conftest import FakeAsyncSession, FakeRedis, make_farm


def _order_obj(farm_id: object, **overrides: object) -> SimpleNamespace:
    now = datetime(2025, 1, 9, 12, 0, tzinfo=UTC)
    fields = {
        "id": uuid4(),
        "farm_id": farm_id,
        "external_id": "shop-1001",
        "customer_name": "Corner Bistro",
        "status": OrderStatusEnum.delivered,
        "items": [{"name": "Pea Shoots", "quantity": 16, "unit": "oz"}],
        "ordered_at": now,
        "requested_delivery_date": date(2025, 1, 10),
        "created_at": now,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.asyncio
async def test_record_order_invalidates_planning_cache() -> None:
    session = FakeAsyncSession()
    redis = FakeRedis()
    farm = make_farm()
    session.returns(farm)
    payload = OrderCreate(
        customer_name="Corner Bistro",
        status="confirmed",
        items=[{"name": "Pea Shoots", "quantity": 16, "unit": "oz"}],
        ordered_at=datetime(2025, 1, 9, 12, 0, tzinfo=UTC),
        requested_delivery_date=date(2025, 1, 10),
    )

    order = await OrderService(session, redis).record_order(farm.id, payload)

    assert session.added == [order]
    assert order.status == OrderStatusEnum.confirmed
    assert order.items == [{"name": "Pea Shoots", "quantity": 16.0, "unit": "oz"}]
    assert redis.store[f"farm:{farm.id}:planning:version"] == "1"


@pytest.mark.asyncio
async def test_record_order_for_missing_farm() -> None:
    session = FakeAsyncSession()
    session.returns(None)
    payload = OrderCreate(items=[{"name": "Radish", "quantity": 4}])

    with pytest.raises(LookupError):
        await OrderService(session).record_order(uuid4(), payload)
    assert session.added == []


def test_to_record_attributes_demand_to_farm_local_date() -> None:
    order = _order_obj(uuid4(), ordered_at=datetime(2025, 1, 10, 3, 0, tzinfo=UTC))

    utc = OrderService.to_record(order)
    chicago = OrderService.to_record(order, ZoneInfo("America/Chicago"))

    assert utc.status == "delivered"
    assert utc.demand_date == date(2025, 1, 10)
    assert chicago.demand_date == date(2025, 1, 9)
    assert chicago.items[0].name == "Pea Shoots"


@pytest.mark.asyncio
async def test_order_endpoints(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm_id = uuid4()
    order = _order_obj(farm_id)
    seen: dict[str, object] = {}

    async def fake_record(self: OrderService, _farm_id: object, payload: OrderCreate) -> object:
        return order

    async def fake_list(self: OrderService, _farm_id: object, **filters: object) -> list[object]:
        seen.update(filters)
        return [order]

    monkeypatch.setattr(OrderService, "record_order", fake_record)
    monkeypatch.setattr(OrderService, "list_orders", fake_list)

    response = await client.post(
        f"/api/v1/orders/{farm_id}",
        json={"status": "delivered", "items": [{"name": "Pea Shoots", "quantity": 16, "unit": "oz"}]},
    )
    assert response.status_code == 201
    assert response.json()["customer_name"] == "Corner Bistro"

    response = await client.get(
        f"/api/v1/orders/{farm_id}",
        params={"status": "delivered", "delivery_date": "2025-01-10"},
    )
    assert response.status_code == 200
    assert len(response.json()["items"]) == 1
    assert seen == {"status": OrderStatusEnum.delivered, "delivery_date": date(2025, 1, 10)}


@pytest.mark.asyncio
async def test_order_requires_items(client: AsyncClient) -> None:
    response = await client.post(f"/api/v1/orders/{uuid4()}", json={"items": []})
    assert response.status_code == 422
