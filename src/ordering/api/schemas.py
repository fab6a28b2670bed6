"""Pydantic request/response schemas for the RigShop API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Every response uses the ``{success, message?,
...}`` envelope.
"""

import json
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ordering.catalog.product import Product
from ordering.order.order import OrderStatus, PaymentMethod


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "full_name": "Ada Lovelace",
                    "phone": "+44 20 7946 0000",
                    "address": "12 Analytical Row",
                    "city": "London",
                    "postal_code": "N1 9GU",
                    "country": "UK",
                }
            ]
        }
    }


class Envelope(BaseModel):
    success: bool = True
    message: str | None = None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    quantity: int = Field(ge=0, default=0)
    images: list[str] = Field(default_factory=list)


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    price: float | None = Field(default=None, ge=0)
    images: list[str] | None = None
    status: Literal["active", "inactive"] | None = None


class AdjustStockRequest(BaseModel):
    delta: int
    reason: str | None = None


class ProductView(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    status: str
    images: list[str]
    primary_image: str | None = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductView":
        return cls(
            id=str(product.id),
            name=product.name,
            price=product.price,
            quantity=product.quantity,
            status=product.status,
            images=product.image_list,
            primary_image=product.primary_image,
        )


class ProductPageResponse(Envelope):
    products: list[ProductView]
    total: int
    total_pages: int
    current_page: int


class ProductResponse(Envelope):
    product: ProductView


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CartItemView(BaseModel):
    product_id: str
    quantity: int
    product: ProductView | None = None


class CartView(BaseModel):
    id: str | None = None
    customer_id: str
    items: list[CartItemView] = Field(default_factory=list)
    item_count: int = 0


class CartResponse(Envelope):
    cart: CartView


class CartCountResponse(Envelope):
    count: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address: ShippingAddressSchema
    payment_method: PaymentMethod
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": ShippingAddressSchema.model_config["json_schema_extra"]["examples"][0],
                    "payment_method": "cash-on-delivery",
                    "notes": "Leave with the concierge",
                }
            ]
        }
    }


class UpdateAddressRequest(BaseModel):
    shipping_address: ShippingAddressSchema


class UpdateStatusRequest(BaseModel):
    status: OrderStatus


class OrderItemView(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    price: float
    quantity: int
    product: ProductView | None = None


class PricingView(BaseModel):
    subtotal: float
    tax: float
    shipping_cost: float
    total: float
    currency: str


class PaymentMethodDetailsView(BaseModel):
    brand: str | None = None
    last4: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    funding: str | None = None
    wallet: str | None = None
    receipt_url: str | None = None


class OrderView(BaseModel):
    id: str
    order_number: str
    customer_id: str
    items: list[OrderItemView]
    shipping_address: ShippingAddressSchema
    payment_method: str
    payment_status: str
    status: str
    pricing: PricingView
    payment_intent_id: str | None = None
    payment_method_details: PaymentMethodDetailsView | None = None
    notes: str | None = None
    cancelled_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderResponse(Envelope):
    order: OrderView


class OrderListResponse(Envelope):
    orders: list[OrderView]
    count: int


class OrderPageResponse(Envelope):
    orders: list[OrderView]
    total: int
    total_pages: int
    current_page: int


class OrderStats(BaseModel):
    total_orders: int
    pending_orders: int
    processing_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    revenue: float


class OrderStatsResponse(Envelope):
    stats: OrderStats


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CreateIntentRequest(BaseModel):
    order_id: str


class ConfirmPaymentRequest(BaseModel):
    order_id: str
    payment_intent_id: str


class PaymentIntentResponse(Envelope):
    payment_intent_id: str
    client_secret: str | None = None
    amount: int
    currency: str


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Payment processor unavailable"
    intent_status: str | None = None


class GatewayConfigResponse(Envelope):
    gateway: str
    should_succeed: bool
    failure_reason: str
    intent_status: str


def encode_address(address: ShippingAddressSchema) -> str:
    return json.dumps(address.model_dump())
