"""Order modification: the owner may change the shipping address while pending."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_owner
from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class UpdateShippingAddress:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict


@ordering.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(UpdateShippingAddress)
    def update_shipping_address(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        require_owner(caller_from(command), order.customer_id)

        address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        order.update_shipping_address(address)
        repo.add(order)
