"""Checkout models for checkout service"""

from pydantic import BaseModel, Field
from typing import Annotated, Any, Literal, Optional, Union
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    GATEWAY = "gateway"
    COD = "cod"
    WALLET = "wallet"


class ShippingAddress(BaseModel):
    """Delivery address for order"""
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "IN"


class LineItemRequest(BaseModel):
    """
    Line item as submitted by the storefront.

    The price is whatever the client displayed; it only identifies the line
    and is never used for pricing.
    """
    product_id: str = Field(min_length=1)
    variant: dict[str, Any] = Field(default_factory=dict)
    quantity: int = Field(gt=0)
    price: Optional[float] = None


class CheckoutRequest(BaseModel):
    """Request to checkout"""
    items: list[LineItemRequest] = Field(min_length=1)
    shipping_address: ShippingAddress
    billing_address: Optional[ShippingAddress] = None
    payment_method: PaymentMethod
    coupon_code: Optional[str] = None
    wallet_amount: float = Field(default=0.0, ge=0)
    gift_wrap: bool = False
    gift_message: Optional[str] = None
    notes: Optional[str] = None


class PricedLineItem(BaseModel):
    """Line item priced from the authoritative product snapshot"""
    product_id: str
    title: str
    variant: dict[str, Any] = Field(default_factory=dict)
    quantity: int
    unit_price: float
    tax_rate_percent: float
    line_total: float
    line_tax: float
    seller_id: Optional[str] = None


class GatewayMeta(BaseModel):
    method: Literal["gateway"] = "gateway"
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    verified_at: Optional[datetime] = None


class CodMeta(BaseModel):
    method: Literal["cod"] = "cod"


class WalletMeta(BaseModel):
    method: Literal["wallet"] = "wallet"


PaymentMeta = Annotated[
    Union[GatewayMeta, CodMeta, WalletMeta],
    Field(discriminator="method"),
]


class Order(BaseModel):
    """Priced, committed order"""
    id: str
    order_number: str
    user_id: str
    seller_id: Optional[str] = None
    items: list[PricedLineItem]
    subtotal: float
    tax_breakdown: dict[str, float]
    taxes: float
    shipping: float
    coupon_id: Optional[str] = None
    coupon_discount: float = 0.0
    wallet_used: float = 0.0
    total: float
    currency: str = "INR"
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    payment_meta: PaymentMeta
    shipping_address: ShippingAddress
    billing_address: ShippingAddress
    gift_wrap: bool = False
    gift_message: Optional[str] = None
    notes: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CheckoutResponse(BaseModel):
    """Response from checkout"""
    success: bool
    order: Optional[Order] = None
    gateway_order_id: Optional[str] = None
    gateway_key_id: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    """Gateway callback payload forwarded by the storefront"""
    order_id: str
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str


class VerifyPaymentResponse(BaseModel):
    success: bool
    verified: bool
    order: Optional[Order] = None
    message: Optional[str] = None
