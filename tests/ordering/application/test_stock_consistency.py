"""Stock never goes negative and is never double-counted across order operations."""

import pytest
from ordering.catalog.product import Product
from ordering.order.cancellation import CancelOrder
from ordering.order.deletion import DeleteOrder
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.payment import ConfirmPayment, CreatePaymentIntent
from protean import current_domain
from protean.exceptions import ExpectedVersionError


def _admin(command_cls, **kwargs):
    current_domain.process(command_cls(actor_id="admin-001", actor_role="admin", **kwargs), asynchronous=False)


def _pay(order_id, gateway):
    intent = current_domain.process(
        CreatePaymentIntent(actor_id="cust-001", order_id=order_id),
        asynchronous=False,
    )
    gateway.succeed_intent(intent["payment_intent_id"])
    current_domain.process(
        ConfirmPayment(actor_id="cust-001", order_id=order_id, payment_intent_id=intent["payment_intent_id"]),
        asynchronous=False,
    )


class TestStockAcrossLifecycles:
    def test_mixed_sequence(self, make_product, place_order, stock_of, fake_gateway):
        product = make_product(quantity=10)

        cod = place_order([(product, 3)])
        online = place_order([(product, 2)], payment_method="credit-card")
        assert stock_of(product) == 7

        _pay(online, fake_gateway)
        assert stock_of(product) == 5

        current_domain.process(CancelOrder(actor_id="cust-001", order_id=cod), asynchronous=False)
        assert stock_of(product) == 8

        _admin(UpdateOrderStatus, order_id=online, status="delivered")
        assert stock_of(product) == 8

        _admin(DeleteOrder, order_id=online)
        _admin(DeleteOrder, order_id=cod)
        assert stock_of(product) == 8

    @pytest.mark.parametrize("final_step", ["cancel", "delete", "deliver"])
    def test_quantity_never_negative(self, make_product, place_order, stock_of, final_step):
        product = make_product(quantity=2)
        order_id = place_order([(product, 2)])
        assert stock_of(product) == 0

        if final_step == "cancel":
            current_domain.process(CancelOrder(actor_id="cust-001", order_id=order_id), asynchronous=False)
            assert stock_of(product) == 2
        elif final_step == "delete":
            _admin(DeleteOrder, order_id=order_id)
            assert stock_of(product) == 2
        else:
            _admin(UpdateOrderStatus, order_id=order_id, status="delivered")
            assert stock_of(product) == 0


class TestConcurrentProductWrites:
    def test_stale_product_write_is_rejected(self, make_product, stock_of):
        product_id = make_product(quantity=10)
        repo = current_domain.repository_for(Product)
        first = repo.get(product_id)
        second = repo.get(product_id)

        first.withdraw(3, reference="ORD-A")
        repo.add(first)

        second.withdraw(8, reference="ORD-B")
        with pytest.raises(ExpectedVersionError):
            repo.add(second)

        assert stock_of(product_id) == 7

    def test_fresh_reload_after_conflict_succeeds(self, make_product, stock_of):
        product_id = make_product(quantity=10)
        repo = current_domain.repository_for(Product)
        stale = repo.get(product_id)

        fresh = repo.get(product_id)
        fresh.withdraw(1)
        repo.add(fresh)

        stale.withdraw(1)
        with pytest.raises(ExpectedVersionError):
            repo.add(stale)

        retry = repo.get(product_id)
        retry.withdraw(1)
        repo.add(retry)
        assert stock_of(product_id) == 8
