# Checkout Service Models

from .product import Product, ProductCategory, ProductSnapshot
from .cart import Cart, CartItem, AddToCartRequest, CartResponse
from .coupon import Coupon, CouponUsageRecord, DiscountKind
from .wallet import WalletLedgerEntry, LedgerDirection
from .checkout import (
    Order,
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    PaymentMeta,
    GatewayMeta,
    CodMeta,
    WalletMeta,
    LineItemRequest,
    PricedLineItem,
    CheckoutRequest,
    CheckoutResponse,
    ShippingAddress,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from .reconciliation import ReconciliationTask, RetrySummary, TaskKind

__all__ = [
    "Product",
    "ProductCategory",
    "ProductSnapshot",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "CartResponse",
    "Coupon",
    "CouponUsageRecord",
    "DiscountKind",
    "WalletLedgerEntry",
    "LedgerDirection",
    "Order",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "PaymentMeta",
    "GatewayMeta",
    "CodMeta",
    "WalletMeta",
    "LineItemRequest",
    "PricedLineItem",
    "CheckoutRequest",
    "CheckoutResponse",
    "ShippingAddress",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
    "ReconciliationTask",
    "RetrySummary",
    "TaskKind",
]
