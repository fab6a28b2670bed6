"""Configurable fake payment processor for development and testing.

Intents live in memory. The adapter can be told at runtime to fail every
call (simulating an unreachable processor) or which status new intents
should start in, which makes it useful for:
- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Development without real processor credentials
"""

from dataclasses import replace
from uuid import uuid4

from ordering.errors import ExternalServiceError
from ordering.gateway.port import ChargeDetails, IntentSnapshot, PaymentGateway


class FakeGateway(PaymentGateway):
    """In-memory payment processor."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment processor unavailable"
        self.intent_status: str = "requires_payment_method"
        self.intents: dict[str, IntentSnapshot] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Payment processor unavailable",
        intent_status: str | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        if intent_status:
            self.intent_status = intent_status

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if not self.should_succeed:
            raise ExternalServiceError(self.failure_reason)

    def _get(self, intent_id: str) -> IntentSnapshot:
        try:
            return self.intents[intent_id]
        except KeyError:
            raise ExternalServiceError(f"No such payment_intent: '{intent_id}'") from None

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentSnapshot:
        self._record("create_intent", amount=amount, currency=currency, metadata=dict(metadata))

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = IntentSnapshot(
            id=intent_id,
            status=self.intent_status,
            amount=amount,
            currency=currency.lower(),
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            metadata={key: str(value) for key, value in metadata.items()},
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> IntentSnapshot:
        self._record("retrieve_intent", intent_id=intent_id)
        return self._get(intent_id)

    def update_intent_amount(self, intent_id: str, amount: int) -> IntentSnapshot:
        self._record("update_intent_amount", intent_id=intent_id, amount=amount)
        intent = replace(self._get(intent_id), amount=amount)
        self.intents[intent_id] = intent
        return intent

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def set_intent_status(self, intent_id: str, status: str) -> None:
        self.intents[intent_id] = replace(self._get(intent_id), status=status)

    def succeed_intent(self, intent_id: str, charge: ChargeDetails | None = None) -> None:
        """Simulate the customer completing payment on the client side."""
        charge = charge or ChargeDetails(
            brand="visa",
            last4="4242",
            exp_month=12,
            exp_year=2030,
            funding="credit",
            receipt_url=f"https://pay.example.test/receipts/{intent_id}",
        )
        self.intents[intent_id] = replace(self._get(intent_id), status="succeeded", charge=charge)

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]
