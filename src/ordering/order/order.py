"""Order aggregate (CQRS): the core of the ordering domain.

An order is a snapshot of what the customer bought: line items copy the
product's name, primary image and price at checkout and are never re-read
from the catalog. Status and payment status evolve through the transition
table below; every other field is fixed at creation, except the shipping
address which the owner may change while the order is still pending.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    any non-terminal state → DELIVERED (admin)
    any non-terminal state → CANCELLED
    DELIVERED and CANCELLED are terminal.

stock_committed records whether the catalog has given up stock for this
order, so cancellation, deletion, delivery and payment confirmation know
whether stock must be taken or put back.
"""

import json
import random
from enum import Enum

from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import AlreadyCancelled, InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockCommitted,
    OrderStockReleased,
    PaymentIntentAttached,
    ShippingAddressUpdated,
)
from ordering.utils import clock


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"
    PAYPAL = "paypal"
    CASH_ON_DELIVERY = "cash-on-delivery"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def generate_order_number(existing_count, now=None):
    """ORD-<epoch millis>-<sequence>-<0..999>; readable, not guaranteed unique."""
    now = now or clock.now()
    return f"ORD-{int(now.timestamp() * 1000)}-{existing_count + 1}-{random.randint(0, 999)}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=50)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Totals locked at checkout: later catalog price changes never touch them."""

    subtotal = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")


@ordering.value_object(part_of="Order")
class PaymentMethodDetails:
    """Card or wallet details reported by the processor after a successful charge."""

    brand = String(max_length=50)
    last4 = String(max_length=4)
    exp_month = Integer()
    exp_year = Integer()
    funding = String(max_length=20)
    wallet = String(max_length=50)
    receipt_url = String(max_length=1000)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1000)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(max_length=64)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    pricing = ValueObject(OrderPricing)
    payment_intent_id = String(max_length=255)
    payment_method_details = ValueObject(PaymentMethodDetails)
    stock_committed = Boolean(default=False)
    notes = Text()
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    cancelled_at = DateTime()
    delivered_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        order_number,
        items_data,
        shipping_address,
        payment_method,
        pricing,
        notes=None,
    ):
        """Create a new pending order from checkout data.

        Args:
            customer_id: The customer placing the order.
            order_number: Human-readable number from generate_order_number().
            items_data: List of dicts with product_id, name, image, price, quantity.
            shipping_address: Dict with full_name, phone, address, city,
                              postal_code, country.
            payment_method: One of PaymentMethod values.
            pricing: Dict with subtotal, tax, shipping_cost, total, currency.
            notes: Optional free-text note from the customer.
        """
        now = clock.now()
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            items=[OrderItem(**item) for item in items_data],
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PENDING.value,
            pricing=OrderPricing(**pricing),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                items=json.dumps(items_data),
                payment_method=payment_method,
                subtotal=order.pricing.subtotal,
                tax=order.pricing.tax,
                shipping_cost=order.pricing.shipping_cost,
                total=order.pricing.total,
                currency=order.pricing.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self):
        return OrderStatus(self.status) in TERMINAL_STATES

    @property
    def is_paid(self):
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def is_cash_on_delivery(self):
        return self.payment_method == PaymentMethod.CASH_ON_DELIVERY.value

    @property
    def total(self):
        return self.pricing.total if self.pricing else 0.0

    def stock_lines(self):
        """(product_id, quantity) for every line item, in order."""
        return [(str(item.product_id), item.quantity) for item in self.items]

    def _stock_lines_json(self):
        return json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in self.stock_lines()])

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot transition from {current.value} to {target_status.value}")

    # -------------------------------------------------------------------
    # Owner edits
    # -------------------------------------------------------------------
    def update_shipping_address(self, shipping_address):
        """Replace the shipping address. Only allowed while PENDING."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransition("Cannot update address for orders that are being processed")

        self.shipping_address = ShippingAddress(**shipping_address)
        self.updated_at = clock.now()

        self.raise_(
            ShippingAddressUpdated(
                order_id=str(self.id),
                shipping_address=json.dumps(shipping_address),
            )
        )

    # -------------------------------------------------------------------
    # Stock bookkeeping
    # -------------------------------------------------------------------
    def mark_stock_committed(self):
        now = clock.now()
        self.stock_committed = True
        self.updated_at = now
        self.raise_(
            OrderStockCommitted(
                order_id=str(self.id),
                items=self._stock_lines_json(),
                committed_at=now,
            )
        )

    def mark_stock_released(self):
        now = clock.now()
        self.stock_committed = False
        self.updated_at = now
        self.raise_(
            OrderStockReleased(
                order_id=str(self.id),
                items=self._stock_lines_json(),
                released_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def assert_cancellable(self):
        current = OrderStatus(self.status)
        if current == OrderStatus.CANCELLED:
            raise AlreadyCancelled()
        if current == OrderStatus.DELIVERED:
            raise InvalidTransition(f"Cannot cancel order that is {current.value}")

    def cancel(self, cancelled_by, stock_released=0):
        """Cancel the order. Stock must already have been released by the caller.

        stock_released is the number of units the caller put back on the shelf.
        """
        self.assert_cancellable()

        previous = self.status
        now = clock.now()
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                cancelled_by=cancelled_by,
                stock_released=stock_released,
                cancelled_at=now,
            )
        )

    def advance_to(self, target_status):
        """Move to PROCESSING or SHIPPED along the transition table."""
        target = OrderStatus(target_status)
        if target in TERMINAL_STATES:
            raise InvalidTransition(f"Use the dedicated operation to move an order to {target.value}")
        self.assert_can_transition(target)

        previous = self.status
        now = clock.now()
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def deliver(self):
        """Mark as delivered. Delivery counts as payment, including cash on delivery."""
        self.assert_can_transition(OrderStatus.DELIVERED)

        previous = self.status
        now = clock.now()
        self.status = OrderStatus.DELIVERED.value
        self.delivered_at = now
        self.payment_status = PaymentStatus.PAID.value
        if self.paid_at is None:
            self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                previous_status=previous,
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def attach_payment_intent(self, payment_intent_id, amount, currency):
        self.payment_intent_id = payment_intent_id
        self.updated_at = clock.now()

        self.raise_(
            PaymentIntentAttached(
                order_id=str(self.id),
                payment_intent_id=payment_intent_id,
                amount=amount,
                currency=currency,
            )
        )

    def mark_paid(self, payment_method_details=None):
        """Record a confirmed payment. Returns False if the order was already paid.

        PENDING orders advance to PROCESSING; later statuses are left alone.
        """
        if self.is_paid:
            return False

        previous = self.status
        now = clock.now()
        self.payment_status = PaymentStatus.PAID.value
        if OrderStatus(self.status) == OrderStatus.PENDING:
            self.status = OrderStatus.PROCESSING.value
        if payment_method_details:
            self.payment_method_details = PaymentMethodDetails(**payment_method_details)
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_intent_id=self.payment_intent_id,
                amount=self.total,
                previous_status=previous,
                new_status=self.status,
                paid_at=now,
            )
        )
        return True


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order lookups beyond get-by-id."""

    PAGE_SIZE = 100

    def _iter_matching(self, **filters):
        offset = 0
        while True:
            page = self._dao.query.filter(**filters).offset(offset).limit(self.PAGE_SIZE).all()
            yield from page.items
            offset += self.PAGE_SIZE
            if offset >= page.total or not page.items:
                break

    def count(self, **filters):
        query = self._dao.query
        if filters:
            query = query.filter(**filters)
        return query.all().total

    def count_by_status(self):
        return {status.value: self.count(status=status.value) for status in OrderStatus}

    def for_customer(self, customer_id):
        """All of a customer's orders, newest first."""
        orders = list(self._iter_matching(customer_id=str(customer_id)))
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def page(self, status=None, page=1, limit=10):
        """One page of orders, newest first, optionally filtered by status.

        Returns (orders, total).
        """
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total

    def revenue(self, statuses):
        return round(sum(order.total for order in self._iter_matching(status__in=list(statuses))), 2)
