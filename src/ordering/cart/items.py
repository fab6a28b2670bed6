"""Cart item management: commands and handler.

Adding or updating an item checks the catalog's current stock, the same
advisory check checkout repeats before it commits anything.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.access import Role
from ordering.cart.cart import ShoppingCart
from ordering.catalog.stock import get_product
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartItem:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    product_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)


def _ensure_in_stock(product_id, quantity):
    product = get_product(product_id)
    if product.quantity < quantity:
        raise ValidationError({"quantity": ["Insufficient stock"]})


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        quantity = command.quantity or 1
        cart = repo.for_customer(command.actor_id) or ShoppingCart.create(customer_id=command.actor_id)

        existing = cart.item_for(command.product_id)
        _ensure_in_stock(command.product_id, quantity + (existing.quantity if existing else 0))

        cart.add_item(product_id=command.product_id, quantity=quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        _ensure_in_stock(command.product_id, command.quantity)

        cart = repo.for_customer(command.actor_id)
        if cart is None:
            raise ObjectNotFoundError("Cart not found")

        cart.update_item_quantity(product_id=command.product_id, new_quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.for_customer(command.actor_id)
        if cart is None:
            raise ObjectNotFoundError("Cart not found")

        cart.remove_item(product_id=command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.for_customer(command.actor_id)
        if cart is None:
            return
        cart.clear()
        repo.add(cart)
