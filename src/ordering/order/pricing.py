"""Order pricing policy: tax, shipping and currency.

The defaults are 10% tax and free shipping strictly above 100, with a flat
fee of 10 otherwise. Each value can be overridden through the environment
(TAX_RATE, FREE_SHIPPING_THRESHOLD, FLAT_SHIPPING_FEE, PAYMENT_CURRENCY).
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    tax: float
    shipping_cost: float
    total: float
    currency: str

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping_cost": self.shipping_cost,
            "total": self.total,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: float = 0.10
    free_shipping_threshold: float = 100.0
    flat_shipping_fee: float = 10.0
    currency: str = "USD"

    @classmethod
    def from_env(cls) -> "PricingPolicy":
        return cls(
            tax_rate=float(os.getenv("TAX_RATE", cls.tax_rate)),
            free_shipping_threshold=float(os.getenv("FREE_SHIPPING_THRESHOLD", cls.free_shipping_threshold)),
            flat_shipping_fee=float(os.getenv("FLAT_SHIPPING_FEE", cls.flat_shipping_fee)),
            currency=os.getenv("PAYMENT_CURRENCY", cls.currency).upper(),
        )

    def shipping_for(self, subtotal: float) -> float:
        return 0.0 if subtotal > self.free_shipping_threshold else self.flat_shipping_fee

    def price(self, lines) -> PriceBreakdown:
        """Price an iterable of (unit_price, quantity) pairs."""
        subtotal = round(sum(unit_price * quantity for unit_price, quantity in lines), 2)
        tax = round(subtotal * self.tax_rate, 2)
        shipping_cost = round(self.shipping_for(subtotal), 2)
        return PriceBreakdown(
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            total=round(subtotal + tax + shipping_cost, 2),
            currency=self.currency,
        )
