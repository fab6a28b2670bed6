"""Order deletion: admin only, any status.

Stock held by an order that never completed goes back to the catalog before
the record is removed. Delivered orders keep their stock with the customer.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_admin
from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.stock import release_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class DeleteOrder:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        require_admin(caller_from(command))

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        restored = False
        if order.status != OrderStatus.DELIVERED.value and order.stock_committed:
            release_stock(order)
            restored = True

        repo._dao.delete(order)

        logger.info(
            "Order deleted",
            order_id=str(order.id),
            status=order.status,
            stock_restored=restored,
        )
