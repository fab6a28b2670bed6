"""Catalog store: product listing, admin product commands and stock adjustment.

Order and payment handlers reach the store through get_product() and
adjust_quantity(); both run inside the caller's unit of work, so a failed
conditional decrement rolls back every other write of the same command.
"""

import json
import math
from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_admin
from ordering.catalog.product import Product, ProductStatus
from ordering.domain import ordering

logger = structlog.get_logger(__name__)

# out-of-stock follows quantity and cannot be set by hand
_SETTABLE_STATUSES = (ProductStatus.ACTIVE.value, ProductStatus.INACTIVE.value)


def get_product(product_id) -> Product:
    """Load a product; raises ObjectNotFoundError when it does not exist."""
    return current_domain.repository_for(Product).get(str(product_id))


def adjust_quantity(product_id, delta, reference=None) -> Product:
    """Apply a signed stock change and stage the product for commit."""
    repo = current_domain.repository_for(Product)
    product = repo.get(str(product_id))
    product.adjust_quantity(delta, reference=reference)
    repo.add(product)
    return product


@dataclass(frozen=True)
class ProductPage:
    products: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def list_products(status=None, search=None, min_price=None, max_price=None, page=1, limit=12) -> ProductPage:
    """Public catalog listing; unknown status filters are rejected."""
    if status is not None and status not in {s.value for s in ProductStatus}:
        raise ValidationError({"status": [f"Unknown status: {status}"]})

    products, total = current_domain.repository_for(Product).page(
        status=status,
        search=search,
        min_price=min_price,
        max_price=max_price,
        page=page,
        limit=limit,
    )
    return ProductPage(products=list(products), total=total, page=page, limit=limit)


@ordering.command(part_of="Product")
class AddProduct:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    images = Text()  # JSON: list of image URLs


@ordering.command(part_of="Product")
class UpdateProduct:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    product_id = Identifier(required=True)
    name = String(max_length=255)
    price = Float(min_value=0.0)
    images = Text()  # JSON: list of image URLs
    status = String(max_length=20)  # active | inactive; blank keeps the current one


@ordering.command(part_of="Product")
class AdjustStock:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    product_id = Identifier(required=True)
    delta = Integer(required=True)
    reason = String(max_length=255)


@ordering.command_handler(part_of=Product)
class CatalogHandler:
    @handle(AddProduct)
    def add_product(self, command):
        require_admin(caller_from(command))

        images = json.loads(command.images) if isinstance(command.images, str) else command.images
        product = Product.create(
            name=command.name,
            price=command.price,
            quantity=command.quantity or 0,
            images=images,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        require_admin(caller_from(command))
        if command.status and command.status not in _SETTABLE_STATUSES:
            raise ValidationError({"status": [f"Status must be one of: {', '.join(_SETTABLE_STATUSES)}"]})

        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(
            name=command.name,
            price=command.price,
            images=json.loads(command.images) if command.images is not None else None,
            active=command.status == ProductStatus.ACTIVE.value if command.status else None,
        )
        repo.add(product)

        logger.info("Product updated", product_id=str(product.id), price=product.price, status=product.status)
        return str(product.id)

    @handle(AdjustStock)
    def adjust_stock(self, command):
        require_admin(caller_from(command))

        product = adjust_quantity(
            command.product_id,
            command.delta,
            reference=command.reason or f"admin:{command.actor_id}",
        )
        logger.info(
            "Stock adjusted",
            product_id=str(product.id),
            delta=command.delta,
            new_quantity=product.quantity,
        )
        return product.quantity
