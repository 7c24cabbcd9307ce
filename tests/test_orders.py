"""Tests for order creation and history."""

from conftest import EXTRA_LARGE, TWO_LARGE, cart


def place_order(client, headers, lines=(EXTRA_LARGE,), subtotal=34.99, total=34.99):
    return client.post(
        "/api/orders",
        json={"items": cart(*lines), "subtotal": subtotal, "total": total},
        headers=headers,
    )


class TestCreateOrder:
    def test_create_success(self, client, auth_headers):
        response = place_order(client, auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Order placed successfully!"

        order = data["order"]
        assert order["status"] == "pending"
        assert order["user_email"] == "shopper@example.com"
        assert order["user_name"] == "Sam Shopper"
        assert order["items"][0]["product_id"] == 1
        assert order["total"] == 34.99
        assert order["tax"] == 0
        assert "id" in order
        assert "created_at" in order

    def test_empty_order_rejected(self, client, auth_headers):
        response = client.post(
            "/api/orders", json={"items": [], "subtotal": 0, "total": 0}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Order must contain at least one item"}

    def test_invalid_body_is_400(self, client, auth_headers):
        items = cart(EXTRA_LARGE)
        items[0]["quantity"] = 0
        response = client.post(
            "/api/orders", json={"items": items, "subtotal": 0, "total": 0}, headers=auth_headers
        )
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request"
        assert any(d["field"].endswith("quantity") for d in data["details"])

    def test_requires_sign_in(self, client):
        response = place_order(client, {})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized - Please sign in to continue"}


class TestListOrders:
    def test_empty_history(self, client, auth_headers):
        response = client.get("/api/orders", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"orders": []}

    def test_newest_first(self, client, auth_headers):
        first = place_order(client, auth_headers).json()["order"]["id"]
        second = place_order(client, auth_headers, lines=(TWO_LARGE,), subtotal=59.98, total=59.98).json()[
            "order"
        ]["id"]

        orders = client.get("/api/orders", headers=auth_headers).json()["orders"]
        assert [o["id"] for o in orders] == [second, first]

    def test_only_own_orders(self, client, auth_headers, make_token):
        place_order(client, auth_headers)

        other = {"Authorization": f"Bearer {make_token(email='other@example.com')}"}
        response = client.get("/api/orders", headers=other)
        assert response.json() == {"orders": []}
