"""Application tests for PlaceOrder: checkout from the cart."""

import json

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.errors import EmptyCart, InsufficientStock
from ordering.order.creation import PlaceOrder
from ordering.order.order import Order, OrderStatus, PaymentStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _cart_count(customer_id="cust-001"):
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    return cart.item_count if cart else 0


class TestCashOnDelivery:
    def test_boundary_total_commits_stock_and_clears_cart(self, make_product, place_order, stock_of, load_order):
        product_a = make_product(name="A", price=50.0, quantity=2)

        order = load_order(place_order([(product_a, 2)]))

        assert order.pricing.subtotal == 100.0
        assert order.pricing.shipping_cost == 10.0
        assert order.pricing.tax == 10.0
        assert order.pricing.total == 120.0
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.stock_committed is True
        assert stock_of(product_a) == 0
        assert _cart_count() == 0

    def test_free_shipping_above_threshold(self, make_product, place_order, load_order):
        product = make_product(price=75.0, quantity=5)
        order = load_order(place_order([(product, 2)]))
        assert order.pricing.shipping_cost == 0.0
        assert order.pricing.tax == 15.0
        assert order.pricing.total == 165.0


class TestOnlinePayment:
    def test_online_order_leaves_stock_and_cart(self, make_product, place_order, stock_of, load_order):
        product = make_product(quantity=3)
        order = load_order(place_order([(product, 2)], payment_method="credit-card"))

        assert order.stock_committed is False
        assert stock_of(product) == 3
        assert _cart_count() == 2


class TestSnapshot:
    def test_line_items_snapshot_catalog_data(self, make_product, place_order, load_order):
        product = make_product(name="Corsair RM850x", price=129.99, quantity=4, images=["psu.png", "psu2.png"])
        order = load_order(place_order([(product, 1)], notes="Ring twice"))

        item = order.items[0]
        assert item.name == "Corsair RM850x"
        assert item.price == 129.99
        assert item.image == "psu.png"
        assert order.notes == "Ring twice"

    def test_order_number_counts_existing_orders(self, make_product, place_order, load_order):
        product = make_product(quantity=10)
        first = load_order(place_order([(product, 1)]))
        second = load_order(place_order([(product, 1)]))

        assert first.order_number.split("-")[2] == "1"
        assert second.order_number.split("-")[2] == "2"


class TestRejectedCheckout:
    def test_empty_cart(self, address):
        with pytest.raises(EmptyCart):
            current_domain.process(
                PlaceOrder(
                    actor_id="cust-001",
                    shipping_address=json.dumps(address),
                    payment_method="paypal",
                ),
                asynchronous=False,
            )

    def test_insufficient_stock_changes_nothing(self, make_product, fill_cart, address, stock_of):
        product = make_product(name="A", quantity=2)
        fill_cart([(product, 2)])
        # Someone else buys one unit after it landed in the cart
        from ordering.catalog.stock import adjust_quantity

        adjust_quantity(product, -1)

        with pytest.raises(InsufficientStock) as exc:
            current_domain.process(
                PlaceOrder(
                    actor_id="cust-001",
                    shipping_address=json.dumps(address),
                    payment_method="cash-on-delivery",
                ),
                asynchronous=False,
            )

        assert exc.value.product_name == "A"
        assert stock_of(product) == 1
        assert _cart_count() == 2
        assert current_domain.repository_for(Order)._dao.query.all().total == 0

    def test_product_removed_from_catalog(self, make_product, fill_cart, address):
        from ordering.catalog.product import Product

        product = make_product()
        fill_cart([(product, 1)])
        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(product))

        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                PlaceOrder(
                    actor_id="cust-001",
                    shipping_address=json.dumps(address),
                    payment_method="cash-on-delivery",
                ),
                asynchronous=False,
            )
