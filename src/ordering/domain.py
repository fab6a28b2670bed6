"""Ordering bounded context: Catalog stock, Shopping Cart, Orders and Payments.

Handles the order lifecycle (CQRS), per-customer carts, product stock
reservations against the catalog, and payment-intent reconciliation with
the external payment processor.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
