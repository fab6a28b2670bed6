"""Domain error taxonomy for the ordering context.

Business-rule violations subclass protean's ``ValidationError`` so they carry
the same ``{field: [messages]}`` payload as field validation failures. Missing
records surface as protean's ``ObjectNotFoundError``, raised by repositories.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

__all__ = [
    "AccessDenied",
    "AlreadyCancelled",
    "AlreadyPaid",
    "Conflict",
    "EmptyCart",
    "ExternalServiceError",
    "InsufficientStock",
    "IntentMismatch",
    "InvalidTransition",
    "NotFound",
    "PaymentIncomplete",
    "UnhandledPaymentState",
    "first_message",
]

NotFound = ObjectNotFoundError


def first_message(messages) -> str:
    """Flatten a protean ``{field: [messages]}`` payload into one line."""
    if isinstance(messages, dict):
        for field_messages in messages.values():
            if isinstance(field_messages, list | tuple) and field_messages:
                return str(field_messages[0])
            if field_messages:
                return str(field_messages)
    return str(messages)


class AccessDenied(Exception):
    """Caller is neither the owner of the record nor an admin."""

    def __init__(self, message: str = "Access denied") -> None:
        self.message = message
        super().__init__(message)


class ExternalServiceError(Exception):
    """The payment processor was unreachable or returned unexpected data."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmptyCart(ValidationError):
    def __init__(self) -> None:
        super().__init__({"cart": ["Cart is empty"]})


class InsufficientStock(ValidationError):
    def __init__(self, product_name: str) -> None:
        self.product_name = product_name
        super().__init__({"quantity": [f"Insufficient stock for {product_name}"]})


class InvalidTransition(ValidationError):
    def __init__(self, message: str) -> None:
        super().__init__({"status": [message]})


class IntentMismatch(ValidationError):
    def __init__(self) -> None:
        super().__init__({"payment_intent_id": ["PaymentIntent does not match order"]})


class PaymentIncomplete(ValidationError):
    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__({"payment_status": [f"Payment not completed: {status}"]})


class UnhandledPaymentState(ValidationError):
    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__({"payment_status": [f"Unhandled status: {status}"]})


class Conflict(ValidationError):
    """An idempotency guard tripped: the requested effect was already applied."""


class AlreadyCancelled(Conflict):
    def __init__(self) -> None:
        super().__init__({"status": ["Order is already cancelled"]})


class AlreadyPaid(Conflict):
    def __init__(self) -> None:
        super().__init__({"payment_status": ["Order already paid"]})
