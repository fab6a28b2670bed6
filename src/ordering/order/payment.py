"""Order payment: create/reuse a processor intent and confirm it.

Processor calls happen before any local change, so a processor failure
leaves the order untouched. Confirmation is safe to repeat: stock is only
taken once (stock_committed) and the paid transition only happens once
(payment_status).
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.access import Role, caller_from, require_owner_or_admin
from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.errors import (
    AlreadyPaid,
    IntentMismatch,
    InvalidTransition,
    PaymentIncomplete,
    UnhandledPaymentState,
)
from ordering.gateway import get_gateway
from ordering.gateway.port import to_minor_units
from ordering.order.order import Order, OrderStatus
from ordering.order.stock import commit_stock

logger = structlog.get_logger(__name__)

INCOMPLETE_STATUSES = frozenset({"requires_payment_method", "requires_confirmation"})


@ordering.command(part_of="Order")
class CreatePaymentIntent:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class ConfirmPayment:
    actor_id = Identifier(required=True)
    actor_role = String(choices=Role, default=Role.USER.value)
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)


def _ensure_payable(order):
    if order.is_paid:
        raise AlreadyPaid()
    if order.status == OrderStatus.CANCELLED.value:
        raise InvalidTransition("Cannot pay for a cancelled order")


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        """Returns dict(payment_intent_id, client_secret, amount, currency)."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        require_owner_or_admin(caller_from(command), order.customer_id)
        _ensure_payable(order)

        gateway = get_gateway()
        # Checkout fixed the currency; PAYMENT_CURRENCY only affects new orders.
        currency = order.pricing.currency.lower()
        desired = to_minor_units(order.total, currency)

        if order.payment_intent_id:
            intent = gateway.retrieve_intent(order.payment_intent_id)
            if intent.amount != desired:
                intent = gateway.update_intent_amount(order.payment_intent_id, desired)
                logger.info(
                    "Payment intent amount updated",
                    order_id=str(order.id),
                    payment_intent_id=intent.id,
                    amount=desired,
                )
        else:
            intent = gateway.create_intent(
                amount=desired,
                currency=currency,
                metadata={"order_id": str(order.id), "user_id": str(command.actor_id)},
            )
            order.attach_payment_intent(intent.id, amount=order.total, currency=currency)
            repo.add(order)
            logger.info("Payment intent created", order_id=str(order.id), payment_intent_id=intent.id)

        return {
            "payment_intent_id": intent.id,
            "client_secret": intent.client_secret,
            "amount": intent.amount,
            "currency": intent.currency,
        }

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        """Reconcile a processor confirmation. Returns the order id."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        require_owner_or_admin(caller_from(command), order.customer_id)

        intent = get_gateway().retrieve_intent(command.payment_intent_id)
        if intent.metadata.get("order_id") != str(order.id):
            raise IntentMismatch()

        if intent.status in INCOMPLETE_STATUSES:
            raise PaymentIncomplete(intent.status)
        if intent.status != "succeeded":
            raise UnhandledPaymentState(intent.status)

        if order.is_paid and order.stock_committed:
            logger.info(
                "Duplicate payment confirmation ignored",
                order_id=str(order.id),
                payment_intent_id=intent.id,
            )
            return str(order.id)

        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidTransition("Cannot confirm payment for a cancelled order")

        commit_stock(order)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.for_customer(order.customer_id)
        if cart is not None and cart.items:
            cart.remove_ordered(order.stock_lines())
            cart_repo.add(cart)

        if not order.payment_intent_id:
            order.attach_payment_intent(intent.id, amount=order.total, currency=intent.currency)
        order.mark_paid(intent.charge.as_dict() if intent.charge else None)
        repo.add(order)

        logger.info(
            "Payment confirmed",
            order_id=str(order.id),
            payment_intent_id=intent.id,
            status=order.status,
        )
        return str(order.id)
