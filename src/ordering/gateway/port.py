"""Payment processor port (abstract interface).

The ordering handlers talk to the processor only through this contract, so
FakeGateway (dev/test) and StripeGateway (production) are interchangeable.
Amounts cross the port in the processor's minor units.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Currencies the processor charges in whole units.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)  # fmt: skip


def to_minor_units(amount: float, currency: str) -> int:
    """Convert a decimal amount into the processor's smallest currency unit."""
    if (currency or "").upper() in ZERO_DECIMAL_CURRENCIES:
        return int(round(amount))
    return int(round(amount * 100))


@dataclass(frozen=True)
class ChargeDetails:
    """How a succeeded intent was paid, as reported on its latest charge."""

    brand: str | None = None
    last4: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    funding: str | None = None
    wallet: str | None = None
    receipt_url: str | None = None

    def as_dict(self) -> dict:
        return {
            "brand": self.brand,
            "last4": self.last4,
            "exp_month": self.exp_month,
            "exp_year": self.exp_year,
            "funding": self.funding,
            "wallet": self.wallet,
            "receipt_url": self.receipt_url,
        }


@dataclass(frozen=True)
class IntentSnapshot:
    """The processor's view of a payment intent at the time it was read."""

    id: str
    status: str
    amount: int
    currency: str
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)
    charge: ChargeDetails | None = None


class PaymentGateway(ABC):
    """Abstract payment processor interface.

    Implementations raise ExternalServiceError when the processor cannot be
    reached or answers with something unusable.
    """

    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentSnapshot:
        """Open a new intent to collect ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> IntentSnapshot:
        """Read an intent's current status, amount and charge details."""
        ...

    @abstractmethod
    def update_intent_amount(self, intent_id: str, amount: int) -> IntentSnapshot:
        """Change the amount an open intent will collect."""
        ...
