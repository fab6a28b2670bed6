"""Moving stock between the catalog and an order.

Both helpers run inside the calling handler's unit of work. commit_stock()
checks every product before it touches any of them, so an order is either
fully committed or not at all.
"""

from collections import OrderedDict

import structlog

from ordering.catalog.stock import adjust_quantity, get_product
from ordering.errors import InsufficientStock

logger = structlog.get_logger(__name__)


def _quantities_by_product(lines):
    totals = OrderedDict()
    for product_id, quantity in lines:
        totals[str(product_id)] = totals.get(str(product_id), 0) + quantity
    return totals


def ensure_available(lines):
    """Raise InsufficientStock for the first product that cannot cover its lines."""
    for product_id, quantity in _quantities_by_product(lines).items():
        product = get_product(product_id)
        if product.quantity < quantity:
            raise InsufficientStock(product.name)


def commit_stock(order):
    """Withdraw stock for every line item and flag the order as committed."""
    if order.stock_committed:
        return

    totals = _quantities_by_product(order.stock_lines())
    ensure_available(totals.items())
    for product_id, quantity in totals.items():
        adjust_quantity(product_id, -quantity, reference=order.order_number)

    order.mark_stock_committed()
    logger.info("Stock committed", order_id=str(order.id), products=len(totals))


def release_stock(order):
    """Put back stock taken for the order. No-op when none was taken."""
    if not order.stock_committed:
        return

    totals = _quantities_by_product(order.stock_lines())
    for product_id, quantity in totals.items():
        adjust_quantity(product_id, quantity, reference=order.order_number)

    order.mark_stock_released()
    logger.info("Stock restored", order_id=str(order.id), products=len(totals))
