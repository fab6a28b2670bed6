"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_owner_or_admin
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.stock import release_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)


def cancel(order, cancelled_by):
    """Release any committed stock, then cancel. Shared with admin status updates."""
    order.assert_cancellable()
    released = sum(qty for _, qty in order.stock_lines()) if order.stock_committed else 0
    release_stock(order)
    order.cancel(cancelled_by=cancelled_by, stock_released=released)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        caller = caller_from(command)
        require_owner_or_admin(caller, order.customer_id)

        cancel(order, cancelled_by=caller.role)
        repo.add(order)

        logger.info("Order cancelled", order_id=str(order.id), cancelled_by=caller.role)
