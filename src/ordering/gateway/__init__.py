"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StripeGateway when STRIPE_SECRET_KEY is set
- FakeGateway otherwise (development and testing)
"""

import os

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _default_gateway() -> PaymentGateway:
    api_key = os.getenv("STRIPE_SECRET_KEY")
    if api_key:
        from ordering.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=api_key)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the active payment gateway, building the default on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _default_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
