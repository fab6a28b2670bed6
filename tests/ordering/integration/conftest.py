import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_exception_handlers
from ordering.api.routes import cart_router, order_router, payment_router, product_router

ADDRESS = {
    "full_name": "Ada Lovelace",
    "phone": "+44 20 7946 0000",
    "address": "12 Analytical Row",
    "city": "London",
    "postal_code": "N1 9GU",
    "country": "UK",
}


def headers(user_id="cust-001", role="user"):
    return {"X-User-Id": user_id, "X-User-Role": role}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def customer():
    return headers()


@pytest.fixture()
def admin():
    return headers("admin-001", "admin")


@pytest.fixture()
def api_product(client, admin):
    def _create(name="RTX 4090", price=50.0, quantity=10):
        response = client.post(
            "/products",
            json={"name": name, "price": price, "quantity": quantity, "images": [f"{name}.png"]},
            headers=admin,
        )
        assert response.status_code == 201
        return response.json()["product"]["id"]

    return _create


@pytest.fixture()
def api_order(client, customer):
    def _place(lines, payment_method="cash-on-delivery", who=None):
        who = who or customer
        for product_id, quantity in lines:
            assert client.post("/cart", json={"product_id": product_id, "quantity": quantity}, headers=who).status_code == 200
        response = client.post(
            "/orders",
            json={"shipping_address": ADDRESS, "payment_method": payment_method},
            headers=who,
        )
        assert response.status_code == 201, response.json()
        return response.json()["order"]

    return _place
