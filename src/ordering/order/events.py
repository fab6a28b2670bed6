"""Domain events for the Order aggregate.

Events are immutable facts about an order's lifecycle. They are stored in the
event store on commit and give every order an audit trail next to its
current-state record.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer checked out their cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line-item snapshots
    payment_method = String(required=True)
    subtotal = Float(required=True)
    tax = Float(required=True)
    shipping_cost = Float(required=True)
    total = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShippingAddressUpdated:
    """The owner changed where a still-pending order should go."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict


@ordering.event(part_of="Order")
class OrderStockCommitted:
    """Stock for every line item was taken from the catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{product_id, quantity}]
    committed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStockReleased:
    """Stock for every line item went back to the catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{product_id, quantity}]
    released_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An admin moved the order forward (processing or shipped)."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer; payment counts as collected."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled by its owner or an admin."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_by = String(required=True)
    stock_released = Integer(default=0)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentAttached:
    """A processor payment intent now represents this order's payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """The processor confirmed payment for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String()
    amount = Float(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    paid_at = DateTime(required=True)
