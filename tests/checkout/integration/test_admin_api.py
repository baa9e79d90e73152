"""Integration tests for the admin, pincode, warehouse and agent endpoints."""

import pytest
from checkout.api import admin_order_router, agent_router, pincode_router, warehouse_router
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (admin_order_router, agent_router, pincode_router, warehouse_router):
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


class TestPincodeEndpoints:
    def test_add_and_check(self, client):
        response = client.post(
            "/pincodes",
            json={"code": "400001", "city": "Mumbai", "state": "Maharashtra", "delivery_days": 2},
        )
        assert response.status_code == 201
        assert response.json()["id"] == "400001"

        check = client.get("/pincodes/400001/check").json()
        assert check["serviceable"] is True
        assert check["delivery_days"] == 2
        assert check["cod_available"] is True

    def test_unknown_pincode_is_not_serviceable(self, client):
        check = client.get("/pincodes/999999/check")
        assert check.status_code == 200
        assert check.json()["serviceable"] is False

    def test_malformed_pincode_is_bad_request(self, client):
        assert client.get("/pincodes/12ab/check").status_code == 400

    def test_deactivate_hides_from_active_listing(self, client, storefront):
        assert client.put("/pincodes/110001/deactivate").status_code == 200

        codes = [p["code"] for p in client.get("/pincodes", params={"active_only": True}).json()]
        assert codes == ["560001"]
        assert client.get("/pincodes/110001/check").json()["serviceable"] is False

        client.put("/pincodes/110001/activate")
        assert client.get("/pincodes/110001/check").json()["serviceable"] is True

    def test_update_pincode(self, client, storefront):
        response = client.put("/pincodes/110001", json={"cod_available": True, "delivery_days": 4})
        assert response.status_code == 200
        check = client.get("/pincodes/110001/check").json()
        assert check["cod_available"] is True
        assert check["delivery_days"] == 4


class TestWarehouseEndpoints:
    def test_register_and_stock(self, client):
        response = client.post(
            "/warehouses",
            json={"code": "hyd-01", "name": "Hyderabad Hub", "city": "Hyderabad", "serviceable_pincodes": ["500001"]},
        )
        assert response.status_code == 201
        warehouse_id = response.json()["id"]

        assert client.put(f"/warehouses/{warehouse_id}/stock/ring-001", json={"stock": 7}).status_code == 200

        stock = client.get(f"/warehouses/{warehouse_id}/stock/ring-001").json()
        assert stock == {
            "warehouse_id": warehouse_id,
            "product_id": "ring-001",
            "stock": 7,
            "reserved_stock": 0,
            "available": 7,
        }
        assert len(client.get(f"/warehouses/{warehouse_id}/stock").json()) == 1

    def test_missing_stock_record_is_404(self, client, storefront):
        response = client.get(f"/warehouses/{storefront['warehouse_id']}/stock/crown-001")
        assert response.status_code == 404

    def test_negative_stock_rejected(self, client, storefront):
        response = client.put(f"/warehouses/{storefront['warehouse_id']}/stock/ring-001", json={"stock": -1})
        assert response.status_code == 422

    def test_duplicate_code_is_bad_request(self, client, storefront):
        response = client.post("/warehouses", json={"code": "BLR-01", "name": "Again", "city": "Bengaluru"})
        assert response.status_code == 400


class TestAgentEndpoints:
    def test_register_and_read(self, client):
        response = client.post(
            "/agents",
            json={"name": "Meena Iyer", "assigned_area": "Mysuru", "assigned_pincodes": ["570001"]},
        )
        assert response.status_code == 201
        agent_id = response.json()["id"]

        agent = client.get(f"/agents/{agent_id}").json()
        assert agent["assigned_pincodes"] == ["570001"]
        assert agent["active_orders"] == 0

    def test_unknown_agent_is_404(self, client):
        assert client.get("/agents/agent-missing").status_code == 404

    def test_deactivate_and_list(self, client, storefront):
        assert client.put(f"/agents/{storefront['agent_id']}/deactivate").status_code == 200
        assert client.get("/agents", params={"active_only": True}).json() == []


class TestAdminOrderEndpoints:
    def test_fulfillment_walkthrough(self, client, storefront, place_order):
        order_id = place_order()

        for status in ("Confirmed", "Shipped"):
            assert client.put(f"/admin/orders/{order_id}/status", json={"status": status}).status_code == 200
        response = client.put(f"/admin/orders/{order_id}/status", json={"status": "Delivered", "cod_collected": True})
        assert response.status_code == 200

        agent_orders = client.get(f"/agents/{storefront['agent_id']}/orders").json()
        assert agent_orders[0]["payment_status"] == "Paid"
        assert client.get(f"/agents/{storefront['agent_id']}/orders", params={"include_delivered": False}).json() == []
        assert [o["order_id"] for o in client.get("/admin/orders", params={"status": "Delivered"}).json()] == [order_id]

    def test_backwards_transition_is_bad_request(self, client, storefront, place_order):
        order_id = place_order()
        client.put(f"/admin/orders/{order_id}/status", json={"status": "Processing"})
        assert client.put(f"/admin/orders/{order_id}/status", json={"status": "Confirmed"}).status_code == 400

    def test_reassign_agent(self, client, storefront, place_order):
        order_id = place_order()
        agent_id = client.post("/agents", json={"name": "Meena Iyer", "assigned_area": "Bengaluru"}).json()["id"]

        response = client.put(f"/admin/orders/{order_id}/agent", json={"agent_id": agent_id})

        assert response.status_code == 200
        assert response.json() == {"order_id": order_id, "agent_id": agent_id}

    def test_unknown_order_is_404(self, client):
        assert client.put("/admin/orders/missing/status", json={"status": "Confirmed"}).status_code == 404
