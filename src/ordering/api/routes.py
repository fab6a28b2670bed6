"""FastAPI routes for RigShop: products, cart, orders and payments.

The caller's identity arrives in the X-User-Id / X-User-Role headers, set by
the upstream authentication layer. Routes translate HTTP into commands and
queries; domain exceptions are turned into responses by the handlers in
ordering.api.errors.
"""

import json
import os

from fastapi import APIRouter, Header, HTTPException, Query
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.access import Caller, Role
from ordering.api.schemas import (
    AddProductRequest,
    AddToCartRequest,
    AdjustStockRequest,
    CartCountResponse,
    CartItemView,
    CartResponse,
    CartView,
    ConfigureGatewayRequest,
    ConfirmPaymentRequest,
    CreateIntentRequest,
    Envelope,
    GatewayConfigResponse,
    OrderItemView,
    OrderListResponse,
    OrderPageResponse,
    OrderResponse,
    OrderStats,
    OrderStatsResponse,
    OrderView,
    PaymentIntentResponse,
    PaymentMethodDetailsView,
    PlaceOrderRequest,
    PricingView,
    ProductPageResponse,
    ProductResponse,
    ProductView,
    ShippingAddressSchema,
    UpdateAddressRequest,
    UpdateCartItemRequest,
    UpdateProductRequest,
    UpdateStatusRequest,
    encode_address,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from ordering.catalog import stock as catalog
from ordering.catalog.product import Product
from ordering.catalog.stock import AddProduct, AdjustStock, UpdateProduct, get_product
from ordering.gateway import get_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.order import queries
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceOrder
from ordering.order.deletion import DeleteOrder
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.modification import UpdateShippingAddress
from ordering.order.payment import ConfirmPayment, CreatePaymentIntent


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _caller(user_id: str | None, role: str | None) -> Caller:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized, no caller identity")
    role = role or Role.USER.value
    if role not in {r.value for r in Role}:
        raise HTTPException(status_code=401, detail=f"Unknown role: {role}")
    return Caller(user_id=user_id, role=role)


def _actor(caller: Caller) -> dict:
    return {"actor_id": caller.user_id, "actor_role": caller.role}


def _current_product(product_id) -> ProductView | None:
    try:
        return ProductView.from_product(get_product(product_id))
    except ObjectNotFoundError:
        return None


def _order_view(order) -> OrderView:
    """Serialize an order, attaching each line item's current catalog product."""
    details = order.payment_method_details
    return OrderView(
        id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        items=[
            OrderItemView(
                product_id=str(item.product_id),
                name=item.name,
                image=item.image,
                price=item.price,
                quantity=item.quantity,
                product=_current_product(item.product_id),
            )
            for item in order.items
        ],
        shipping_address=ShippingAddressSchema(
            full_name=order.shipping_address.full_name,
            phone=order.shipping_address.phone,
            address=order.shipping_address.address,
            city=order.shipping_address.city,
            postal_code=order.shipping_address.postal_code,
            country=order.shipping_address.country,
        ),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        status=order.status,
        pricing=PricingView(
            subtotal=order.pricing.subtotal,
            tax=order.pricing.tax,
            shipping_cost=order.pricing.shipping_cost,
            total=order.pricing.total,
            currency=order.pricing.currency,
        ),
        payment_intent_id=order.payment_intent_id,
        payment_method_details=(
            PaymentMethodDetailsView(
                brand=details.brand,
                last4=details.last4,
                exp_month=details.exp_month,
                exp_year=details.exp_year,
                funding=details.funding,
                wallet=details.wallet,
                receipt_url=details.receipt_url,
            )
            if details
            else None
        ),
        notes=order.notes,
        cancelled_by=order.cancelled_by,
        created_at=order.created_at,
        updated_at=order.updated_at,
        paid_at=order.paid_at,
        cancelled_at=order.cancelled_at,
        delivered_at=order.delivered_at,
    )


def _load_order(caller: Caller, order_id: str) -> OrderView:
    return _order_view(queries.order_for(caller, order_id))


def _cart_view(customer_id: str) -> CartView:
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    if cart is None:
        return CartView(customer_id=customer_id)
    return CartView(
        id=str(cart.id),
        customer_id=str(cart.customer_id),
        items=[
            CartItemView(
                product_id=str(item.product_id),
                quantity=item.quantity,
                product=_current_product(item.product_id),
            )
            for item in cart.items
        ],
        item_count=cart.item_count,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductResponse)
async def add_product(
    body: AddProductRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ProductResponse:
    caller = _caller(x_user_id, x_user_role)
    command = AddProduct(
        **_actor(caller),
        name=body.name,
        price=body.price,
        quantity=body.quantity,
        images=json.dumps(body.images),
    )
    product_id = current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).get(product_id)
    return ProductResponse(message="Product created", product=ProductView.from_product(product))


@product_router.get("", response_model=ProductPageResponse)
async def list_products(
    status: str | None = Query(default=None),
    search: str | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
) -> ProductPageResponse:
    result = catalog.list_products(
        status=status,
        search=search,
        min_price=min_price,
        max_price=max_price,
        page=page,
        limit=limit,
    )
    return ProductPageResponse(
        products=[ProductView.from_product(product) for product in result.products],
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
    )


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product_by_id(product_id: str) -> ProductResponse:
    return ProductResponse(product=ProductView.from_product(get_product(product_id)))


@product_router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ProductResponse:
    caller = _caller(x_user_id, x_user_role)
    command = UpdateProduct(
        **_actor(caller),
        product_id=product_id,
        name=body.name,
        price=body.price,
        images=json.dumps(body.images) if body.images is not None else None,
        status=body.status,
    )
    current_domain.process(command, asynchronous=False)
    return ProductResponse(message="Product updated", product=ProductView.from_product(get_product(product_id)))


@product_router.put("/{product_id}/stock", response_model=ProductResponse)
async def adjust_stock(
    product_id: str,
    body: AdjustStockRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ProductResponse:
    caller = _caller(x_user_id, x_user_role)
    command = AdjustStock(**_actor(caller), product_id=product_id, delta=body.delta, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return ProductResponse(message="Stock updated", product=ProductView.from_product(get_product(product_id)))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def view_cart(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartResponse:
    caller = _caller(x_user_id, x_user_role)
    return CartResponse(cart=_cart_view(caller.user_id))


@cart_router.get("/count", response_model=CartCountResponse)
async def cart_count(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartCountResponse:
    caller = _caller(x_user_id, x_user_role)
    cart = current_domain.repository_for(ShoppingCart).for_customer(caller.user_id)
    return CartCountResponse(count=cart.item_count if cart else 0)


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(
    body: AddToCartRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartResponse:
    caller = _caller(x_user_id, x_user_role)
    command = AddToCart(**_actor(caller), product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse(message="Item added to cart", cart=_cart_view(caller.user_id))


@cart_router.put("", response_model=CartResponse)
async def update_cart_item(
    body: UpdateCartItemRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartResponse:
    caller = _caller(x_user_id, x_user_role)
    command = UpdateCartItem(**_actor(caller), product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse(message="Cart updated", cart=_cart_view(caller.user_id))


@cart_router.delete("/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartResponse:
    caller = _caller(x_user_id, x_user_role)
    current_domain.process(RemoveFromCart(**_actor(caller), product_id=product_id), asynchronous=False)
    return CartResponse(message="Item removed from cart", cart=_cart_view(caller.user_id))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CartResponse:
    caller = _caller(x_user_id, x_user_role)
    current_domain.process(ClearCart(**_actor(caller)), asynchronous=False)
    return CartResponse(message="Cart cleared", cart=_cart_view(caller.user_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    """Check out the caller's cart.

    Cash-on-delivery orders take stock and empty the cart immediately; card
    and wallet orders wait for /payments/confirm.
    """
    caller = _caller(x_user_id, x_user_role)
    command = PlaceOrder(
        **_actor(caller),
        shipping_address=encode_address(body.shipping_address),
        payment_method=body.payment_method.value,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderResponse(message="Order created successfully", order=_load_order(caller, order_id))


@order_router.get("/my-orders", response_model=OrderListResponse)
async def my_orders(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderListResponse:
    caller = _caller(x_user_id, x_user_role)
    orders = [_order_view(order) for order in queries.my_orders(caller)]
    return OrderListResponse(orders=orders, count=len(orders))


@order_router.get("/stats/overview", response_model=OrderStatsResponse)
async def order_stats(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderStatsResponse:
    caller = _caller(x_user_id, x_user_role)
    return OrderStatsResponse(stats=OrderStats(**queries.order_stats(caller)))


@order_router.get("", response_model=OrderPageResponse)
async def list_orders(
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderPageResponse:
    caller = _caller(x_user_id, x_user_role)
    result = queries.list_orders(caller, status=status, page=page, limit=limit)
    return OrderPageResponse(
        orders=[_order_view(order) for order in result.orders],
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    caller = _caller(x_user_id, x_user_role)
    return OrderResponse(order=_load_order(caller, order_id))


@order_router.put("/{order_id}/address", response_model=OrderResponse)
async def update_address(
    order_id: str,
    body: UpdateAddressRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    caller = _caller(x_user_id, x_user_role)
    command = UpdateShippingAddress(
        **_actor(caller),
        order_id=order_id,
        shipping_address=encode_address(body.shipping_address),
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse(message="Shipping address updated", order=_load_order(caller, order_id))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    caller = _caller(x_user_id, x_user_role)
    current_domain.process(CancelOrder(**_actor(caller), order_id=order_id), asynchronous=False)
    return OrderResponse(message="Order cancelled successfully", order=_load_order(caller, order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    caller = _caller(x_user_id, x_user_role)
    command = UpdateOrderStatus(**_actor(caller), order_id=order_id, status=body.status.value)
    current_domain.process(command, asynchronous=False)
    return OrderResponse(message="Order status updated", order=_load_order(caller, order_id))


@order_router.delete("/{order_id}", response_model=Envelope)
async def delete_order(
    order_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Envelope:
    caller = _caller(x_user_id, x_user_role)
    current_domain.process(DeleteOrder(**_actor(caller), order_id=order_id), asynchronous=False)
    return Envelope(message="Order deleted successfully")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreateIntentRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> PaymentIntentResponse:
    caller = _caller(x_user_id, x_user_role)
    result = current_domain.process(
        CreatePaymentIntent(**_actor(caller), order_id=body.order_id),
        asynchronous=False,
    )
    return PaymentIntentResponse(**result)


@payment_router.post("/confirm", response_model=OrderResponse)
async def confirm_payment(
    body: ConfirmPaymentRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    caller = _caller(x_user_id, x_user_role)
    command = ConfirmPayment(
        **_actor(caller),
        order_id=body.order_id,
        payment_intent_id=body.payment_intent_id,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse(message="Order marked paid", order=_load_order(caller, body.order_id))


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    Toggles processor failures and the status new intents start in, for
    manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        intent_status=body.intent_status,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        intent_status=gateway.intent_status,
    )
