"""Coupon models for checkout service"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(BaseModel):
    """Coupon created by a seller or admin"""
    id: str
    code: str
    discount_kind: DiscountKind
    value: float = Field(gt=0)
    min_order_amount: float = Field(default=0.0, ge=0)
    max_discount_amount: Optional[float] = Field(default=None, gt=0)
    max_total_uses: Optional[int] = Field(default=None, gt=0)
    uses_per_user: int = Field(default=1, gt=0)
    valid_from: datetime
    valid_to: Optional[datetime] = None
    active: bool = True
    # Seller-scoped coupons only apply to that seller's orders
    seller_id: Optional[str] = None


class CouponUsageRecord(BaseModel):
    """One redemption of a coupon by a user for an order"""
    coupon_id: str
    user_id: str
    order_id: str
    discount_amount: float = Field(ge=0)
    created_at: datetime
