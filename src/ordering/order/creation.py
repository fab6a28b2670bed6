"""Order creation: PlaceOrder command and handler.

Checkout reads the caller's cart, prices it against the catalog and creates
a pending order. Cash-on-delivery orders take stock and empty the cart right
away; online orders wait for payment confirmation to do both.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.access import Role
from ordering.cart.cart import ShoppingCart
from ordering.catalog.stock import get_product
from ordering.domain import ordering
from ordering.errors import EmptyCart, InsufficientStock
from ordering.order.order import Order, PaymentMethod, generate_order_number
from ordering.order.pricing import PricingPolicy
from ordering.order.stock import commit_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, choices=PaymentMethod)
    notes = Text()


def _snapshot_lines(cart):
    """Check every cart line against the catalog and snapshot it.

    Nothing is written here; a missing product or short stock aborts
    checkout before the order exists.
    """
    snapshots = []
    for item in cart.items:
        product = get_product(item.product_id)
        if product.quantity < item.quantity:
            raise InsufficientStock(product.name)
        snapshots.append(
            {
                "product_id": str(product.id),
                "name": product.name,
                "image": product.primary_image,
                "price": product.price,
                "quantity": item.quantity,
            }
        )
    return snapshots


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(ShoppingCart)
        order_repo = current_domain.repository_for(Order)

        cart = cart_repo.for_customer(command.actor_id)
        if cart is None or not cart.items:
            raise EmptyCart()

        items_data = _snapshot_lines(cart)
        breakdown = PricingPolicy.from_env().price((line["price"], line["quantity"]) for line in items_data)

        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        order = Order.create(
            customer_id=command.actor_id,
            order_number=generate_order_number(order_repo.count()),
            items_data=items_data,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            pricing=breakdown.as_dict(),
            notes=command.notes,
        )

        if order.is_cash_on_delivery:
            commit_stock(order)
            cart.clear()
            cart_repo.add(cart)

        order_repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(command.actor_id),
            payment_method=order.payment_method,
            total=order.total,
        )
        return str(order.id)
