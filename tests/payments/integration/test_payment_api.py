"""Integration tests for the payment gateway endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from payments.api import payment_router
from payments.gateway import get_gateway


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(payment_router)
    return TestClient(app)


def _create_order(client, amount=2299.0):
    response = client.post("/payments/orders", json={"amount": amount, "currency": "INR", "receipt": "rcpt_api_1"})
    assert response.status_code == 200
    return response.json()["gateway_order_id"]


class TestCreateGatewayOrder:
    def test_returns_order(self, client):
        response = client.post("/payments/orders", json={"amount": 2299.0, "currency": "INR", "receipt": "rcpt_1"})
        assert response.status_code == 200
        body = response.json()
        assert body["gateway_order_id"].startswith("order_")
        assert body["amount"] == 2299.0
        assert body["key_id"] == "rzp_test_fake"

    def test_missing_fields(self, client):
        response = client.post("/payments/orders", json={"amount": 100.0})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required fields: amount, currency, receipt"}

    def test_non_positive_amount(self, client):
        response = client.post("/payments/orders", json={"amount": 0, "currency": "INR", "receipt": "r"})
        assert response.status_code == 400
        assert response.json()["error"] == "Amount must be greater than zero"


class TestVerifyPayment:
    def test_valid_signature(self, client):
        gateway_order_id = _create_order(client)
        outcome = get_gateway().simulate_checkout(gateway_order_id)
        response = client.post(
            "/payments/verify",
            json={
                "razorpay_order_id": outcome.gateway_order_id,
                "razorpay_payment_id": outcome.payment_id,
                "razorpay_signature": outcome.signature,
            },
        )
        assert response.status_code == 200
        assert response.json()["isValid"] is True
        assert response.json()["message"] == "Payment verified successfully"

    def test_invalid_signature(self, client):
        gateway_order_id = _create_order(client)
        response = client.post(
            "/payments/verify",
            json={
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": "pay_forged",
                "razorpay_signature": "bad",
            },
        )
        assert response.status_code == 200
        assert response.json()["isValid"] is False
        assert response.json()["message"] == "Payment verification failed"

    def test_missing_fields(self, client):
        response = client.post("/payments/verify", json={"razorpay_order_id": "order_1"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("Missing required fields")


class TestPaymentStatus:
    def test_known_payment(self, client):
        gateway_order_id = _create_order(client)
        outcome = get_gateway().simulate_checkout(gateway_order_id)
        response = client.get(f"/payments/{outcome.payment_id}/status")
        assert response.status_code == 200
        assert response.json()["status"] == "captured"
        assert response.json()["method"] == "upi"

    def test_unknown_payment(self, client):
        response = client.get("/payments/pay_missing/status")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Payment not found"}


class TestConfigureGateway:
    def test_toggle_failure(self, client):
        response = client.post(
            "/payments/gateway/configure",
            json={"should_succeed": False, "failure_reason": "Card declined"},
        )
        assert response.status_code == 200
        assert response.json()["should_succeed"] is False
        assert get_gateway().should_succeed is False

    def test_forbidden_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/payments/gateway/configure", json={"should_succeed": False})
        assert response.status_code == 403
