"""Admin status updates: moving an order along the transition table.

Delivery counts as payment: an order that never had its stock taken (an
online order delivered without confirmation) commits stock first.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_admin
from ordering.domain import ordering
from ordering.order.cancellation import cancel
from ordering.order.order import Order, OrderStatus
from ordering.order.stock import commit_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        caller = caller_from(command)
        require_admin(caller)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        target = OrderStatus(command.status)

        if target == OrderStatus.CANCELLED:
            cancel(order, cancelled_by=caller.role)
        elif target == OrderStatus.DELIVERED:
            order.assert_can_transition(target)
            commit_stock(order)
            order.deliver()
        else:
            order.advance_to(target.value)

        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
