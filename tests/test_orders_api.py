"""Integration tests for the orders API via TestClient."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlmodel import select

from storefront.database import get_session
from storefront.exceptions import PaymentVerificationError
from storefront.main import app
from storefront.models.order import Order
from storefront.routes.orders import get_payment_gateway


def _timestamp(value):
    # pydantic writes UTC as a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _create_order(client, payload):
    response = client.post("/api/orders/create", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_returns_stored_order(client, order_payload):
    order = _create_order(client, order_payload)

    assert order["id"]
    assert order["isPaid"] is False
    assert order["paidAt"] is None
    assert order["createdAt"]
    assert order["paymentMethod"] == "pending"
    assert order["fullName"] == "Abebe Bikila"
    assert order["postalCode"] == "10001"
    assert order["total"] == 24.8
    assert order["shippingCost"] == 5.0
    assert order["cartItems"][0]["name"] == "Espresso"


def test_create_then_get_round_trip(client, order_payload):
    created = _create_order(client, order_payload)

    response = client.get(f"/api/orders/{created['id']}")
    assert response.status_code == 200
    fetched = response.json()

    assert fetched == created
    for field in ("fullName", "email", "phone", "address", "city", "postalCode",
                  "shippingOption", "subtotal", "discount", "tax", "shippingCost", "total"):
        assert fetched[field] == order_payload[field]


def test_get_unknown_order_is_404(client):
    response = client.get("/api/orders/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_create_without_email_is_400_and_not_persisted(client, session, order_payload):
    del order_payload["email"]

    response = client.post("/api/orders/create", json=order_payload)

    assert response.status_code == 400
    assert "email" in response.json()["message"]
    assert session.exec(select(Order)).all() == []


def test_create_with_malformed_email_is_400(client, order_payload):
    order_payload["email"] = "not-an-email"
    response = client.post("/api/orders/create", json=order_payload)
    assert response.status_code == 400


def test_create_with_blank_name_is_400(client, order_payload):
    order_payload["fullName"] = "   "
    response = client.post("/api/orders/create", json=order_payload)
    assert response.status_code == 400
    assert "fullName" in response.json()["message"]


def test_create_with_empty_cart_is_400(client, order_payload):
    order_payload["cartItems"] = []
    response = client.post("/api/orders/create", json=order_payload)
    assert response.status_code == 400


def test_create_with_unknown_shipping_option_is_400(client, order_payload):
    order_payload["shippingOption"] = "overnight"
    response = client.post("/api/orders/create", json=order_payload)
    assert response.status_code == 400


def test_create_cannot_claim_paid_method(client, order_payload):
    order_payload["paymentMethod"] = "chapa"
    response = client.post("/api/orders/create", json=order_payload)
    assert response.status_code == 400


def test_create_rejects_tampered_total(client, session, order_payload):
    order_payload["total"] = 1.0

    response = client.post("/api/orders/create", json=order_payload)

    assert response.status_code == 400
    assert "total" in response.json()["message"]
    assert session.exec(select(Order)).all() == []


def test_create_accepts_unrounded_client_totals(client, order_payload):
    order_payload["cartItems"] = [{"id": 7, "name": "Latte", "price": 19.99, "quantity": 1}]
    order_payload.update({
        "subtotal": 19.99,
        "discount": 1.999,
        "tax": 1.7991,
        "shippingCost": 5,
        "total": 24.7891,
    })

    order = _create_order(client, order_payload)

    assert order["cartItems"][0]["id"] == "7"
    assert order["discount"] == 2.0
    assert order["tax"] == 1.8
    assert order["total"] == 24.79


def test_pay_marks_order_paid(client, order_payload):
    created = _create_order(client, order_payload)

    response = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "chapa"})
    assert response.status_code == 200
    paid = response.json()
    assert paid["isPaid"] is True
    assert paid["paymentMethod"] == "chapa"

    fetched = client.get(f"/api/orders/{created['id']}").json()
    assert fetched["isPaid"] is True
    assert fetched["paymentMethod"] == "chapa"
    assert _timestamp(fetched["paidAt"]) >= _timestamp(fetched["createdAt"])
    assert fetched["cartItems"] == created["cartItems"]
    assert fetched["total"] == created["total"]


def test_pay_twice_is_rejected_and_keeps_paid_at(client, order_payload):
    created = _create_order(client, order_payload)
    first = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "chapa"}).json()

    response = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "cash"})

    assert response.status_code == 409
    assert response.json() == {"message": "Order already paid"}
    fetched = client.get(f"/api/orders/{created['id']}").json()
    assert fetched["isPaid"] is True
    assert fetched["paidAt"] == first["paidAt"]
    assert fetched["paymentMethod"] == "chapa"


def test_pay_unknown_order_is_404(client):
    response = client.patch("/api/orders/missing/pay", json={"paymentMethod": "chapa"})
    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_pay_without_method_is_400(client, order_payload):
    created = _create_order(client, order_payload)
    response = client.patch(f"/api/orders/{created['id']}/pay", json={})
    assert response.status_code == 400


def test_pay_with_failed_verification_leaves_order_unpaid(client, order_payload):
    created = _create_order(client, order_payload)
    gateway = MagicMock()
    gateway.confirm_payment.side_effect = PaymentVerificationError()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    response = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "chapa"})

    assert response.status_code == 400
    assert response.json() == {"message": "Payment verification failed"}
    gateway.confirm_payment.assert_called_once_with(created["id"], 24.8)
    assert client.get(f"/api/orders/{created['id']}").json()["isPaid"] is False


def test_pay_with_confirmed_verification(client, order_payload):
    created = _create_order(client, order_payload)
    gateway = MagicMock()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    response = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "chapa"})

    assert response.status_code == 200
    assert response.json()["isPaid"] is True
    gateway.confirm_payment.assert_called_once()


def test_create_store_failure_is_500(client, order_payload):
    failing = MagicMock()
    failing.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
    app.dependency_overrides[get_session] = lambda: failing

    response = client.post("/api/orders/create", json=order_payload)

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to create order"}
    failing.rollback.assert_called_once()


def test_timestamps_carry_utc_offset(client, order_payload):
    created = _create_order(client, order_payload)
    paid = client.patch(f"/api/orders/{created['id']}/pay", json={"paymentMethod": "chapa"}).json()

    assert _timestamp(created["createdAt"]).utcoffset() == timedelta(0)
    assert _timestamp(paid["paidAt"]).utcoffset() == timedelta(0)
