"""Application tests for order queries: my orders, admin listing and stats."""

import pytest
from ordering.access import Caller
from ordering.errors import AccessDenied
from ordering.order import queries
from ordering.order.fulfillment import UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ValidationError

ADMIN = Caller(user_id="admin-001", role="admin")
OWNER = Caller(user_id="cust-001")


def _set_status(order_id, status):
    current_domain.process(
        UpdateOrderStatus(actor_id="admin-001", actor_role="admin", order_id=order_id, status=status),
        asynchronous=False,
    )


class TestMyOrders:
    def test_only_own_orders(self, make_product, place_order):
        product = make_product(quantity=10)
        mine = place_order([(product, 1)])
        place_order([(product, 1)], customer_id="cust-002")

        assert [str(o.id) for o in queries.my_orders(OWNER)] == [mine]

    def test_order_for_owner_or_admin(self, make_product, place_order):
        order_id = place_order([(make_product(), 1)])
        assert str(queries.order_for(OWNER, order_id).id) == order_id
        assert str(queries.order_for(ADMIN, order_id).id) == order_id
        with pytest.raises(AccessDenied):
            queries.order_for(Caller(user_id="cust-002"), order_id)


class TestAdminListing:
    def test_pagination_and_filter(self, make_product, place_order):
        product = make_product(quantity=20)
        ids = [place_order([(product, 1)]) for _ in range(5)]
        _set_status(ids[0], "processing")

        page = queries.list_orders(ADMIN, page=1, limit=2)
        assert len(page.orders) == 2
        assert page.total == 5
        assert page.total_pages == 3

        processing = queries.list_orders(ADMIN, status="processing")
        assert [str(o.id) for o in processing.orders] == [ids[0]]

    def test_unknown_status_filter(self):
        with pytest.raises(ValidationError):
            queries.list_orders(ADMIN, status="lost")

    def test_requires_admin(self):
        with pytest.raises(AccessDenied):
            queries.list_orders(OWNER)


class TestStats:
    def test_counts_and_revenue(self, make_product, place_order):
        product = make_product(price=50.0, quantity=20)
        pending = place_order([(product, 1)])  # total 65.0
        processing = place_order([(product, 2)])  # total 120.0
        delivered = place_order([(product, 3)])  # total 165.0
        cancelled = place_order([(product, 1)])
        _set_status(processing, "processing")
        _set_status(delivered, "delivered")
        _set_status(cancelled, "cancelled")
        assert pending

        stats = queries.order_stats(ADMIN)

        assert stats["total_orders"] == 4
        assert stats["pending_orders"] == 1
        assert stats["processing_orders"] == 1
        assert stats["delivered_orders"] == 1
        assert stats["cancelled_orders"] == 1
        assert stats["shipped_orders"] == 0
        assert stats["revenue"] == 285.0
