"""Shared fixtures for ordering tests: catalog products, carts and orders."""

import json

import pytest
from protean import current_domain

from ordering.cart.items import AddToCart
from ordering.catalog.product import Product
from ordering.order.creation import PlaceOrder
from ordering.order.order import Order

ADDRESS = {
    "full_name": "Ada Lovelace",
    "phone": "+44 20 7946 0000",
    "address": "12 Analytical Row",
    "city": "London",
    "postal_code": "N1 9GU",
    "country": "UK",
}

CUSTOMER = "cust-001"
ADMIN = "admin-001"


@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def make_product():
    def _make(name="RTX 4090", price=50.0, quantity=10, images=None):
        product = Product.create(
            name=name,
            price=price,
            quantity=quantity,
            images=images if images is not None else [f"https://img.example.test/{name}.png"],
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    return _make


@pytest.fixture()
def fill_cart():
    def _fill(lines, customer_id=CUSTOMER):
        for product_id, quantity in lines:
            current_domain.process(
                AddToCart(actor_id=customer_id, product_id=product_id, quantity=quantity),
                asynchronous=False,
            )

    return _fill


@pytest.fixture()
def place_order(fill_cart):
    """Fill the customer's cart with ``lines`` and check out."""

    def _place(lines, payment_method="cash-on-delivery", customer_id=CUSTOMER, notes=None):
        fill_cart(lines, customer_id=customer_id)
        order_id = current_domain.process(
            PlaceOrder(
                actor_id=customer_id,
                shipping_address=json.dumps(ADDRESS),
                payment_method=payment_method,
                notes=notes,
            ),
            asynchronous=False,
        )
        return order_id

    return _place


@pytest.fixture()
def stock_of():
    def _stock(product_id):
        return current_domain.repository_for(Product).get(product_id).quantity

    return _stock


@pytest.fixture()
def load_order():
    def _load(order_id):
        return current_domain.repository_for(Order).get(order_id)

    return _load
