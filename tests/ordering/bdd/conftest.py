"""Shared BDD fixtures and step definitions for the ordering domain."""

import json

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart
from ordering.catalog.product import Product
from ordering.catalog.stock import adjust_quantity
from ordering.errors import first_message
from ordering.order.creation import PlaceOrder
from ordering.order.order import Order
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

CUSTOMER = "cust-bdd"

ADDRESS = {
    "full_name": "Linus Builder",
    "phone": "555-0199",
    "address": "42 Motherboard Ave",
    "city": "Portland",
    "postal_code": "97201",
    "country": "US",
}


@pytest.fixture()
def ctx():
    """Scenario state shared between steps: products by name, order id, last error."""
    return {"products": {}, "order_id": None, "error": None}


def _order(ctx):
    return current_domain.repository_for(Order).get(ctx["order_id"])


def _cart():
    return current_domain.repository_for(ShoppingCart).for_customer(CUSTOMER)


def _check_out(ctx, method):
    ctx["order_id"] = current_domain.process(
        PlaceOrder(actor_id=CUSTOMER, shipping_address=json.dumps(ADDRESS), payment_method=method),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with {quantity:d} in stock'))
def _(ctx, name, price, quantity):
    product = Product.create(name=name, price=price, quantity=quantity)
    current_domain.repository_for(Product).add(product)
    ctx["products"][name] = str(product.id)


@given(parsers.cfparse('the customer has {quantity:d} of "{name}" in their cart'))
def _(ctx, quantity, name):
    current_domain.process(
        AddToCart(actor_id=CUSTOMER, product_id=ctx["products"][name], quantity=quantity),
        asynchronous=False,
    )


@given(parsers.cfparse('{quantity:d} unit of "{name}" is sold elsewhere'))
def _(ctx, quantity, name):
    adjust_quantity(ctx["products"][name], -quantity)


@given(parsers.cfparse('the customer checks out with "{method}"'))
def _(ctx, method):
    _check_out(ctx, method)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer checks out with "{method}"'))
def _(ctx, method):
    try:
        _check_out(ctx, method)
    except ValidationError as exc:
        ctx["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(
    parsers.cfparse(
        "the order totals are subtotal {subtotal:f}, tax {tax:f}, shipping {shipping:f} and total {total:f}"
    )
)
def _(ctx, subtotal, tax, shipping, total):
    pricing = _order(ctx).pricing
    assert pricing.subtotal == subtotal
    assert pricing.tax == tax
    assert pricing.shipping_cost == shipping
    assert pricing.total == total


@then(parsers.cfparse('the order status is "{status}" with payment "{payment}"'))
def _(ctx, status, payment):
    order = _order(ctx)
    assert order.status == status
    assert order.payment_status == payment


@then(parsers.cfparse('"{name}" has {quantity:d} in stock'))
def _(ctx, name, quantity):
    assert current_domain.repository_for(Product).get(ctx["products"][name]).quantity == quantity


@then("the cart is empty")
def _():
    cart = _cart()
    assert cart is None or cart.item_count == 0


@then(parsers.cfparse("the cart holds {count:d} items"))
def _(count):
    assert _cart().item_count == count


@then(parsers.cfparse('{action} fails with "{message}"'))
def _(ctx, action, message):
    assert ctx["error"] is not None, f"expected {action} to fail"
    assert first_message(ctx["error"].messages) == message
