"""Read-side order lookups with the same access rules as the commands."""

import math
from dataclasses import dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.access import Caller, require_admin, require_owner_or_admin
from ordering.order.order import Order, OrderStatus

REVENUE_STATUSES = (
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
)


@dataclass(frozen=True)
class OrderPage:
    orders: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def my_orders(caller: Caller) -> list:
    return current_domain.repository_for(Order).for_customer(caller.user_id)


def order_for(caller: Caller, order_id) -> Order:
    order = current_domain.repository_for(Order).get(str(order_id))
    require_owner_or_admin(caller, order.customer_id)
    return order


def list_orders(caller: Caller, status=None, page=1, limit=10) -> OrderPage:
    require_admin(caller)
    if status is not None and status not in {s.value for s in OrderStatus}:
        raise ValidationError({"status": [f"Unknown status: {status}"]})

    orders, total = current_domain.repository_for(Order).page(status=status, page=page, limit=limit)
    return OrderPage(orders=list(orders), total=total, page=page, limit=limit)


def order_stats(caller: Caller) -> dict:
    require_admin(caller)

    repo = current_domain.repository_for(Order)
    by_status = repo.count_by_status()
    return {
        "total_orders": sum(by_status.values()),
        "pending_orders": by_status[OrderStatus.PENDING.value],
        "processing_orders": by_status[OrderStatus.PROCESSING.value],
        "shipped_orders": by_status[OrderStatus.SHIPPED.value],
        "delivered_orders": by_status[OrderStatus.DELIVERED.value],
        "cancelled_orders": by_status[OrderStatus.CANCELLED.value],
        "revenue": repo.revenue(REVENUE_STATUSES),
    }
