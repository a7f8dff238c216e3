"""Coupon Evaluator"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..database.coupons import CouponDatabase
from ..models.coupon import Coupon, DiscountKind

logger = logging.getLogger(__name__)


@dataclass
class CouponResult:
    """Coupon accepted for this checkout"""
    coupon: Coupon
    discount_amount: float

    @property
    def coupon_id(self) -> str:
        return self.coupon.id


@dataclass
class NotApplicable:
    """No active coupon with this code"""
    code: str


@dataclass
class Rejected:
    """Coupon exists but cannot be used; reason is machine-readable"""
    reason: str
    message: str


CouponOutcome = Union[CouponResult, NotApplicable, Rejected]


def calculate_discount(coupon: Coupon, subtotal: float) -> float:
    """Bounded discount for a subtotal, rounded to paise"""
    if coupon.discount_kind == DiscountKind.PERCENTAGE:
        discount = subtotal * coupon.value / 100
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
    else:
        discount = coupon.value

    discount = max(0.0, min(discount, subtotal))
    return round(discount, 2)


class CouponEvaluator:
    """Validates a coupon code for a user and order subtotal"""

    def __init__(self, coupons: CouponDatabase):
        self.coupons = coupons

    def evaluate(
        self,
        code: str,
        subtotal: float,
        user_id: str,
        now: datetime,
        seller_id: Optional[str] = None,
    ) -> CouponOutcome:
        """
        Run the coupon guards in order, stopping at the first failure.

        The usage-count guard is only a pre-check; the cap is enforced again
        when the usage record is written.
        """
        coupon = self.coupons.get_active_coupon(code)
        if not coupon:
            return NotApplicable(code=code)

        if now < coupon.valid_from:
            return Rejected(
                reason="not_yet_valid",
                message=f"This coupon will be valid from {coupon.valid_from.date().isoformat()}",
            )
        if coupon.valid_to is not None and now > coupon.valid_to:
            return Rejected(reason="expired", message="This coupon has expired")

        if coupon.seller_id and seller_id and coupon.seller_id != seller_id:
            return Rejected(
                reason="seller_mismatch",
                message="This coupon is not valid for products from this seller",
            )

        if subtotal < coupon.min_order_amount:
            return Rejected(
                reason="below_minimum",
                message=f"Minimum order value of {coupon.min_order_amount:.2f} required",
            )

        if coupon.max_total_uses is not None:
            if self.coupons.count_usage(coupon.id) >= coupon.max_total_uses:
                return Rejected(
                    reason="exhausted",
                    message="This coupon has reached its maximum usage limit",
                )

        if self.coupons.count_usage(coupon.id, user_id) >= coupon.uses_per_user:
            return Rejected(
                reason="usage_limit_reached",
                message="You have already used this coupon the maximum number of times",
            )

        discount = calculate_discount(coupon, subtotal)
        logger.debug(f"Coupon {coupon.code} accepted for user {user_id}: discount {discount}")
        return CouponResult(coupon=coupon, discount_amount=discount)
