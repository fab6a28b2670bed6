"""Stripe payment gateway adapter.

Wraps the stripe-python SDK's PaymentIntent API. Intents are created with
automatic payment methods; confirmation reads the latest charge to report
card or wallet details back to the order.
"""

import stripe
import structlog

from ordering.errors import ExternalServiceError
from ordering.gateway.port import ChargeDetails, IntentSnapshot, PaymentGateway

logger = structlog.get_logger(__name__)


def _get(obj, key):
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _plain_dict(obj) -> dict:
    """StripeObjects stopped being dicts in recent SDKs; to_dict() works on all of them."""
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    return dict(obj)


def _charge_details(intent) -> ChargeDetails | None:
    charge = _get(intent, "latest_charge")
    if charge is None or isinstance(charge, str):
        return None

    method = _get(charge, "payment_method_details")
    card = _get(method, "card")
    wallet = _get(card, "wallet")
    return ChargeDetails(
        brand=_get(card, "brand"),
        last4=_get(card, "last4"),
        exp_month=_get(card, "exp_month"),
        exp_year=_get(card, "exp_year"),
        funding=_get(card, "funding"),
        wallet=_get(wallet, "type"),
        receipt_url=_get(charge, "receipt_url"),
    )


def _snapshot(intent) -> IntentSnapshot:
    return IntentSnapshot(
        id=_get(intent, "id"),
        status=_get(intent, "status"),
        amount=_get(intent, "amount"),
        currency=_get(intent, "currency"),
        client_secret=_get(intent, "client_secret"),
        metadata={key: str(value) for key, value in _plain_dict(_get(intent, "metadata")).items()},
        charge=_charge_details(intent),
    )


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        stripe.api_key = api_key

    def _call(self, operation: str, fn, *args, **kwargs) -> IntentSnapshot:
        try:
            return _snapshot(fn(*args, **kwargs))
        except stripe.StripeError as exc:
            logger.error("Stripe call failed", operation=operation, error=str(exc))
            raise ExternalServiceError(getattr(exc, "user_message", None) or str(exc)) from exc

    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentSnapshot:
        return self._call(
            "create_intent",
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency.lower(),
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )

    def retrieve_intent(self, intent_id: str) -> IntentSnapshot:
        return self._call(
            "retrieve_intent",
            stripe.PaymentIntent.retrieve,
            intent_id,
            expand=["latest_charge"],
        )

    def update_intent_amount(self, intent_id: str, amount: int) -> IntentSnapshot:
        return self._call(
            "update_intent_amount",
            stripe.PaymentIntent.modify,
            intent_id,
            amount=amount,
        )
