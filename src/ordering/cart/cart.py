"""Shopping Cart aggregate (CQRS): one cart per customer, read at checkout.

The cart only records product references and quantities; prices are read
from the catalog when an order is placed. Cash-on-delivery checkout empties
the cart; a confirmed online payment removes only the lines that were ordered.
"""

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from ordering.utils import clock


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = clock.now()
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def item_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    def add_item(self, product_id, quantity):
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = clock.now()
        existing = self.item_for(product_id)
        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))
            new_quantity = quantity

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                product_id=str(product_id),
                quantity=quantity,
                new_quantity=new_quantity,
            )
        )

    def update_item_quantity(self, product_id, new_quantity):
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.item_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = clock.now()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, product_id):
        item = self.item_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = clock.now()

        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def remove_ordered(self, lines):
        """Take ordered (product_id, quantity) lines out of the cart.

        Items added after checkout, and any quantity beyond what was ordered,
        stay in the cart.
        """
        for product_id, quantity in lines:
            item = self.item_for(product_id)
            if item is None:
                continue
            if item.quantity > quantity:
                self.update_item_quantity(product_id, item.quantity - quantity)
            else:
                self.remove_item(product_id)

    def clear(self):
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = clock.now()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                items_removed=removed,
            )
        )


@ordering.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def for_customer(self, customer_id):
        """Return the customer's cart, or None if they never had one."""
        return self._dao.query.filter(customer_id=str(customer_id)).all().first
