"""Product aggregate (CQRS): the catalog's view of price and shelf stock.

Stock Model:
    quantity: units on hand; never negative
    status:   derived from quantity on every mutation
              (quantity == 0 → out-of-stock; restocking an out-of-stock
              product makes it active again; inactive stays inactive)

withdraw() is the conditional decrement every order path goes through: it
refuses to take more units than are on hand instead of clamping.
"""

import json
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String, Text

from ordering.catalog.events import (
    ProductAdded,
    ProductDetailsUpdated,
    ProductOutOfStock,
    StockRestored,
    StockWithdrawn,
)
from ordering.domain import ordering
from ordering.errors import InsufficientStock
from ordering.utils import clock


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out-of-stock"


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    images = Text()  # JSON array of image URLs
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def status_must_follow_quantity(self):
        if (self.quantity == 0) != (self.status == ProductStatus.OUT_OF_STOCK.value):
            raise ValidationError({"status": ["Product status must be out-of-stock exactly when quantity is 0"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, price, quantity=0, images=None):
        now = clock.now()
        product = cls(
            name=name,
            price=price,
            quantity=quantity,
            images=json.dumps(list(images or [])),
            status=cls._status_for(quantity, ProductStatus.ACTIVE.value),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                price=str(price),
                quantity=quantity,
                added_at=now,
            )
        )
        return product

    @staticmethod
    def _status_for(quantity, current_status):
        if quantity == 0:
            return ProductStatus.OUT_OF_STOCK.value
        if current_status == ProductStatus.OUT_OF_STOCK.value:
            return ProductStatus.ACTIVE.value
        return current_status

    @property
    def image_list(self):
        return json.loads(self.images) if self.images else []

    @property
    def primary_image(self):
        images = self.image_list
        return images[0] if images else None

    # -------------------------------------------------------------------
    # Catalog details
    # -------------------------------------------------------------------
    def update_details(self, name=None, price=None, images=None, active=None):
        """Change catalog details; None leaves a field as it is.

        Orders keep the name, price and image they were placed with. A
        product without stock stays out-of-stock whatever ``active`` says.
        """
        if name is not None:
            self.name = name
        if price is not None:
            self.price = price
        if images is not None:
            self.images = json.dumps(list(images))
        if active is not None:
            wanted = ProductStatus.ACTIVE.value if active else ProductStatus.INACTIVE.value
            self.status = self._status_for(self.quantity, wanted)
        self.updated_at = clock.now()

        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                name=self.name,
                price=str(self.price),
                status=self.status,
                updated_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Stock mutations
    # -------------------------------------------------------------------
    def _set_quantity(self, new_quantity):
        with atomic_change(self):
            self.quantity = new_quantity
            self.status = self._status_for(new_quantity, self.status)
        self.updated_at = clock.now()

    def withdraw(self, quantity, reference=None):
        """Take units off the shelf. Fails rather than going below zero."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if self.quantity < quantity:
            raise InsufficientStock(self.name)

        previous = self.quantity
        self._set_quantity(previous - quantity)

        self.raise_(
            StockWithdrawn(
                product_id=str(self.id),
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.quantity,
                reference=reference,
            )
        )
        if self.quantity == 0:
            self.raise_(
                ProductOutOfStock(
                    product_id=str(self.id),
                    name=self.name,
                    detected_at=self.updated_at,
                )
            )

    def restore(self, quantity, reference=None):
        """Put units back on the shelf."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.quantity
        self._set_quantity(previous + quantity)

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.quantity,
                reference=reference,
            )
        )

    def adjust_quantity(self, delta, reference=None):
        """Apply a signed stock change; negative deltas are conditional."""
        if delta < 0:
            self.withdraw(-delta, reference=reference)
        elif delta > 0:
            self.restore(delta, reference=reference)


@ordering.repository(part_of=Product)
class ProductRepository:
    def page(self, status=None, search=None, min_price=None, max_price=None, page=1, limit=12):
        """One page of products, newest first. Returns (products, total)."""
        filters = {}
        if status:
            filters["status"] = status
        if search:
            filters["name__icontains"] = search
        if min_price is not None:
            filters["price__gte"] = min_price
        if max_price is not None:
            filters["price__lte"] = max_price

        query = self._dao.query
        if filters:
            query = query.filter(**filters)
        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total
