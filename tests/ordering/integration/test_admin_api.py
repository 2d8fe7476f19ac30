"""Integration tests for the admin back-office API via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import admin_router, register_exception_handlers
from ordering.checkout.reconciliation import flag_for_reconciliation

ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(admin_router)
    register_exception_handlers(app)
    return TestClient(app)


class TestAdminGuard:
    def test_requires_admin_role(self, client):
        response = client.get("/admin/dashboard", headers={"X-User-Id": "user-001"})
        assert response.status_code == 403

    def test_requires_identity(self, client):
        assert client.get("/admin/dashboard", headers={"X-User-Role": "admin"}).status_code == 401


class TestAdminOrders:
    def test_list_with_filters(self, client, place_order):
        place_order(payment_id="pay_first")
        place_order(user_id="user-002", payment_id="pay_second")
        assert len(client.get("/admin/orders", headers=ADMIN).json()) == 2
        assert len(client.get("/admin/orders?search=pay_second", headers=ADMIN).json()) == 1
        assert client.get("/admin/orders?status=shipped", headers=ADMIN).json() == []

    def test_status_update(self, client, place_order):
        order_id = place_order()
        response = client.put(f"/admin/orders/{order_id}/status", json={"status": "processing"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json() == {"order_id": order_id, "status": "processing"}

    def test_invalid_transition_is_400(self, client, place_order):
        order_id = place_order()
        response = client.put(f"/admin/orders/{order_id}/status", json={"status": "delivered"}, headers=ADMIN)
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client):
        response = client.put("/admin/orders/missing/status", json={"status": "processing"}, headers=ADMIN)
        assert response.status_code == 404

    def test_cancel_and_delete(self, client, place_order):
        order_id = place_order()
        assert client.put(f"/admin/orders/{order_id}/cancel", headers=ADMIN).json()["status"] == "cancelled"
        assert client.delete(f"/admin/orders/{order_id}", headers=ADMIN).status_code == 200
        assert client.get("/admin/orders", headers=ADMIN).json() == []


class TestAdminProducts:
    def test_add_list_restock(self, client):
        created = client.post(
            "/admin/products",
            json={"name": "Chanderi Dupatta", "price": 650.0, "stock_quantity": 2},
            headers=ADMIN,
        )
        assert created.status_code == 201
        product_id = created.json()["product_id"]

        products = client.get("/admin/products", headers=ADMIN).json()
        assert products[0]["low_stock"] is True

        restocked = client.put(f"/admin/products/{product_id}/restock", json={"quantity": 10}, headers=ADMIN)
        assert restocked.json() == {"product_id": product_id, "stock_quantity": 12}


class TestAdminDashboard:
    def test_figures(self, client, place_order):
        place_order()
        body = client.get("/admin/dashboard", headers=ADMIN).json()
        assert body["total_orders"] == 1
        assert body["total_revenue"] == 2200.0
        assert len(body["recent_orders"]) == 1


class TestReconciliationAPI:
    def test_list_and_resolve(self, client):
        case = flag_for_reconciliation("partial_write", payment_id="pay_001", reason="write failed")
        cases = client.get("/admin/reconciliation", headers=ADMIN).json()
        assert [c["id"] for c in cases] == [str(case.id)]

        response = client.put(
            f"/admin/reconciliation/{case.id}/resolve",
            json={"resolution_note": "Order recreated"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert client.get("/admin/reconciliation", headers=ADMIN).json() == []
