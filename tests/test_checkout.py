"""Tests for hosted checkout session creation."""

import pytest

from conftest import EXTRA_LARGE, TWO_LARGE, cart

ADDRESS = {
    "address_line1": "10 Downing Street",
    "city": "London",
    "county": "Greater London",
    "postcode": "sw1a2aa",
}


def checkout(client, headers, lines=(EXTRA_LARGE, TWO_LARGE), subtotal=94.97, tax=0, total=None, address=ADDRESS):
    body = {
        "items": cart(*lines),
        "subtotal": subtotal,
        "tax": tax,
        "total": subtotal + tax if total is None else total,
    }
    if address is not None:
        body["shipping_address"] = address
    return client.post("/api/checkout", json=body, headers=headers)


class TestCreateCheckoutSession:
    def test_create_success(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers)
        assert response.status_code == 200
        data = response.json()

        [session] = fake_gateway.checkout_sessions
        assert data == {"sessionId": session["id"], "url": f"https://checkout.stripe.com/c/pay/{session['id']}"}
        assert session["mode"] == "payment"
        assert session["customer_email"] == "shopper@example.com"
        assert session["success_url"] == "https://shop.example.com/orders?session_id={CHECKOUT_SESSION_ID}"
        assert session["cancel_url"] == "https://shop.example.com/checkout"

        lines = session["line_items"]
        assert [(li["price_data"]["unit_amount"], li["quantity"]) for li in lines] == [(3499, 1), (2999, 2)]
        assert lines[0]["price_data"]["currency"] == "gbp"
        assert lines[0]["price_data"]["product_data"]["images"]

        orders = client.get("/api/orders", headers=auth_headers).json()["orders"]
        [order] = orders
        assert session["metadata"]["order_id"] == order["id"]
        assert order["status"] == "pending"
        assert order["shipping_postcode"] == "SW1A 2AA"
        assert order["shipping_country"] == "United Kingdom"
        assert order["total"] == 94.97

    def test_tax_line_item(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, lines=(EXTRA_LARGE,), subtotal=34.99, tax=7.0)
        assert response.status_code == 200

        lines = fake_gateway.checkout_sessions[0]["line_items"]
        assert lines[-1]["price_data"]["product_data"]["name"] == "Tax"
        assert lines[-1]["price_data"]["unit_amount"] == 700

    def test_line_items_named_from_catalog(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, lines=((3, "Cheapest rack", 25.99, 1),), subtotal=25.99)
        assert response.status_code == 200

        [line] = fake_gateway.checkout_sessions[0]["line_items"]
        assert line["price_data"]["product_data"]["name"] == "Magnetic Frag Rack [Standard]"
        assert line["price_data"]["unit_amount"] == 2599

    def test_address_is_sanitized(self, client, auth_headers, fake_gateway):
        address = {**ADDRESS, "address_line1": " <script>10 Downing Street "}
        checkout(client, auth_headers, address=address)

        [order] = client.get("/api/orders", headers=auth_headers).json()["orders"]
        assert order["shipping_address_line1"] == "script10 Downing Street"


class TestCheckoutErrors:
    def test_empty_cart(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, lines=(), subtotal=0)
        assert response.status_code == 400
        assert response.json() == {"error": "Cart is empty"}

    def test_address_required(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, address=None)
        assert response.status_code == 400
        assert response.json() == {"error": "Shipping address is required"}

    @pytest.mark.parametrize("missing", ["address_line1", "city", "postcode"])
    def test_incomplete_address(self, client, auth_headers, fake_gateway, missing):
        address = {k: v for k, v in ADDRESS.items() if k != missing}
        response = checkout(client, auth_headers, address=address)
        assert response.status_code == 400
        assert response.json()["error"].startswith("Shipping address is incomplete")

    def test_invalid_postcode(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, address={**ADDRESS, "postcode": "12345"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid UK postcode format"

    def test_address_too_short(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, address={**ADDRESS, "address_line1": "1A", "city": "L"})
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Address line 1 must be at least 3 characters"
        assert data["details"] == [
            "Address line 1 must be at least 3 characters",
            "City must be at least 2 characters",
        ]
        assert fake_gateway.checkout_sessions == []

    def test_underpriced_item(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, lines=((1, "Magnetic Frag Rack [Extra Large]", 0.50, 1),), subtotal=0.50)
        assert response.status_code == 400
        assert response.json()["error"] == "Price mismatch for Product Magnetic Frag Rack [Extra Large]"
        assert fake_gateway.checkout_sessions == []
        assert client.get("/api/orders", headers=auth_headers).json() == {"orders": []}

    def test_out_of_stock(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, lines=((2, "Magnetic Frag Rack [Large]", 29.99, 9),), subtotal=269.91)
        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient stock for Product Magnetic Frag Rack [Large]"
        assert fake_gateway.checkout_sessions == []

    def test_total_mismatch(self, client, auth_headers, fake_gateway):
        response = checkout(client, auth_headers, total=1.0)
        assert response.status_code == 400
        assert response.json()["error"] == "Order total does not match cart"

    def test_stripe_failure(self, client, auth_headers, fake_gateway, stripe_error):
        fake_gateway.fail_with = stripe_error
        response = checkout(client, auth_headers)
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to create checkout session"

    def test_requires_sign_in(self, client, fake_gateway):
        response = checkout(client, {})
        assert response.status_code == 401
