"""Checkout API routes"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Header

from ..core.config import get_settings
from ..database import (
    cart_db,
    coupon_db,
    order_db,
    product_db,
    reconciliation_db,
    wallet_db,
)
from ..models.checkout import (
    CheckoutRequest,
    CheckoutResponse,
    Order,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from ..security.auth import AuthenticatedUser, require_user
from ..services.checkout import CheckoutService
from ..services.errors import CheckoutError
from ..services.gateway_client import GatewayClient
from ..services.verification import PaymentConfirmation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])

# Initialize services (overridable through app.dependency_overrides)
gateway_client: Optional[GatewayClient] = None
checkout_service: Optional[CheckoutService] = None
payment_confirmation: Optional[PaymentConfirmation] = None


def get_gateway_client() -> GatewayClient:
    """Get or create gateway client"""
    global gateway_client
    if gateway_client is None:
        settings = get_settings()
        gateway_client = GatewayClient(
            base_url=settings.gateway_base_url,
            key_id=settings.gateway_key_id,
            key_secret=settings.gateway_key_secret,
            timeout=settings.gateway_timeout_seconds,
            retry_on_timeout=settings.gateway_retry_on_timeout,
        )
    return gateway_client


def get_checkout_service() -> CheckoutService:
    """Get or create the checkout service over the shared stores"""
    global checkout_service
    if checkout_service is None:
        checkout_service = CheckoutService(
            products=product_db,
            coupons=coupon_db,
            wallets=wallet_db,
            carts=cart_db,
            orders=order_db,
            reconciliation_queue=reconciliation_db,
            gateway=get_gateway_client(),
            settings=get_settings(),
        )
    return checkout_service


def get_payment_confirmation(
    service: CheckoutService = Depends(get_checkout_service),
) -> PaymentConfirmation:
    return PaymentConfirmation(
        orders=service.orders,
        gateway=service.gateway,
        side_effects=service.side_effects,
        reconciliation=service.reconciliation,
    )


def to_http_error(error: CheckoutError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


@router.post("", response_model=CheckoutResponse)
async def checkout(
    request: CheckoutRequest,
    user: AuthenticatedUser = Depends(require_user),
    service: CheckoutService = Depends(get_checkout_service),
    idempotency_key: Optional[str] = Header(None),
):
    """
    Place an order for the authenticated user.

    Prices, stock and coupon rules are re-derived on the server; the prices
    in the request are ignored. For online payment the response carries the
    gateway order id and publishable key the browser needs to collect payment.
    """
    try:
        result = await service.checkout(
            user_id=user.user_id,
            request=request,
            idempotency_key=idempotency_key,
        )
    except CheckoutError as e:
        if e.status_code >= 500:
            logger.error(f"Checkout failed for user {user.user_id}: {e.message}")
        else:
            logger.info(f"Checkout rejected for user {user.user_id}: {e.code}")
        raise to_http_error(e)

    return CheckoutResponse(
        success=True,
        order=result.order,
        gateway_order_id=result.gateway_order_id,
        gateway_key_id=result.gateway_key_id,
    )


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    user: AuthenticatedUser = Depends(require_user),
    confirmation: PaymentConfirmation = Depends(get_payment_confirmation),
):
    """Confirm an online payment using the signature returned by the gateway"""
    try:
        order = confirmation.confirm(user.user_id, request)
    except CheckoutError as e:
        raise to_http_error(e)

    return VerifyPaymentResponse(
        success=True,
        verified=True,
        order=order,
        message="Payment verified successfully",
    )


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    user: AuthenticatedUser = Depends(require_user),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Get order details"""
    order = service.orders.get_order(order_id)
    if not order or order.user_id != user.user_id:
        raise HTTPException(
            status_code=404,
            detail={"code": "order_not_found", "message": "Order not found"},
        )
    return order


@router.get("/orders", response_model=list[Order])
async def list_orders(
    limit: int = 50,
    user: AuthenticatedUser = Depends(require_user),
    service: CheckoutService = Depends(get_checkout_service),
):
    """List the caller's recent orders"""
    return service.orders.list_orders(user_id=user.user_id, limit=limit)
