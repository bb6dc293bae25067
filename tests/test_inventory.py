import logging

import pytest

from hospital_api.core import config
from hospital_api.core.errors import InsufficientStockError, ValidationError
from hospital_api.services.inventory import StockOperation, adjust_stock, find_stock_item, low_stock_query


def test_add_stock(make_item):
    item = make_item(quantity=5)

    adjust_stock(item, 10, StockOperation.ADD)

    assert item.quantity == 15


def test_subtract_clamps_to_zero_and_warns(make_item, caplog):
    item = make_item(quantity=3)

    with caplog.at_level(logging.WARNING, logger="hospital_api.services.inventory"):
        adjust_stock(item, 10, "subtract")

    assert item.quantity == 0
    assert "clamped to 0" in caplog.text


def test_strict_subtract_raises(make_item, monkeypatch):
    monkeypatch.setattr(config, "STRICT_STOCK_SUBTRACT", True)
    item = make_item(quantity=3)

    with pytest.raises(InsufficientStockError) as excinfo:
        adjust_stock(item, 10, StockOperation.SUBTRACT)

    assert item.quantity == 3
    assert excinfo.value.available == 3
    assert excinfo.value.requested == 10


@pytest.mark.parametrize("quantity", [0, -1, 2.5, True])
def test_adjust_requires_positive_integer(make_item, quantity):
    item = make_item(quantity=3)

    with pytest.raises(ValidationError):
        adjust_stock(item, quantity, StockOperation.ADD)


def test_low_stock_includes_reorder_level(db, make_item):
    make_item(name="At level", quantity=10, reorder_level=10)
    make_item(name="Below", quantity=2, reorder_level=10)
    make_item(name="Plenty", quantity=50, reorder_level=10)
    make_item(name="Retired", quantity=0, reorder_level=10, is_active=False)

    names = [item.name for item in low_stock_query(db)]

    assert names == ["Below", "At level"]


def test_find_stock_item_ignores_case(db, make_item):
    item = make_item(name="Amoxicillin")

    assert find_stock_item(db, "  amoxicillin ").id == item.id
    assert find_stock_item(db, "Ibuprofen") is None


def test_inventory_crud_over_http(client, pharmacist, headers):
    auth = headers(pharmacist)
    created = client.post("/api/inventory", json={
        "name": "Ibuprofen", "category": "medicine", "quantity": 40, "unit": "tablet",
        "unit_price": 1.5, "cost": 0.7, "reorder_level": 20,
    }, headers=auth)
    assert created.status_code == 201
    item_id = created.json()["data"]["id"]

    updated = client.put(f"/api/inventory/{item_id}", json={"location": "Shelf B"}, headers=auth)
    assert updated.json()["data"]["location"] == "Shelf B"

    stock = client.post(f"/api/inventory/{item_id}/stock", json={"quantity": 25, "operation": "subtract"},
                        headers=auth)
    assert stock.status_code == 200
    assert stock.json()["data"]["quantity"] == 15
    assert stock.json()["data"]["is_low_stock"] is True

    alerts = client.get("/api/inventory/alerts", headers=auth)
    assert [i["id"] for i in alerts.json()["data"]] == [item_id]

    listed = client.get("/api/inventory?low_stock=true", headers=auth)
    assert listed.json()["pagination"]["total_results"] == 1


def test_inventory_update_cannot_set_quantity(client, pharmacist, make_item, headers):
    item = make_item(quantity=7)

    response = client.put(f"/api/inventory/{item.id}", json={"quantity": 999}, headers=headers(pharmacist))

    assert response.status_code == 200
    assert response.json()["data"]["quantity"] == 7


def test_inventory_update_ignores_nulls(client, pharmacist, make_item, headers):
    item = make_item(unit_price="2.50")

    response = client.put(f"/api/inventory/{item.id}", json={"unit_price": None, "location": "Shelf C"},
                          headers=headers(pharmacist))

    assert response.status_code == 200
    assert response.json()["data"]["unit_price"] == 2.5
    assert response.json()["data"]["location"] == "Shelf C"


def test_only_admin_deletes_inventory(client, admin, pharmacist, make_item, headers):
    item = make_item()

    assert client.delete(f"/api/inventory/{item.id}", headers=headers(pharmacist)).status_code == 403
    assert client.delete(f"/api/inventory/{item.id}", headers=headers(admin)).status_code == 200
    assert client.get(f"/api/inventory/{item.id}", headers=headers(admin)).status_code == 404


def test_stock_endpoint_validates_operation(client, pharmacist, make_item, headers):
    item = make_item()

    response = client.post(f"/api/inventory/{item.id}/stock", json={"quantity": 1, "operation": "steal"},
                           headers=headers(pharmacist))

    assert response.status_code == 400
    assert "errors" in response.json()
