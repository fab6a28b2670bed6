"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductAdded:
    """A product was listed in the catalog."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)  # serialized float
    quantity = Integer(required=True)
    added_at = DateTime(required=True)


@ordering.event(part_of="Product")
class StockWithdrawn:
    """Units left the shelf for an order (or an admin correction)."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reference = String()


@ordering.event(part_of="Product")
class StockRestored:
    """Units came back to the shelf (cancellation, deletion, restock)."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reference = String()


@ordering.event(part_of="Product")
class ProductOutOfStock:
    """The last unit of a product was taken."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    detected_at = DateTime(required=True)


@ordering.event(part_of="Product")
class ProductDetailsUpdated:
    """An admin changed the name, price, images or active flag."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)  # serialized float
    status = String(required=True)
    updated_at = DateTime(required=True)
