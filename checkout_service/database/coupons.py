"""Coupon and coupon-usage storage"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..core.config import settings
from ..models.coupon import Coupon, CouponUsageRecord, DiscountKind
from ..services.errors import CouponUsageLimitReached


def _demo_coupons() -> dict[str, Coupon]:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    coupons = [
        Coupon(
            id="cpn-save20",
            code="SAVE20",
            discount_kind=DiscountKind.PERCENTAGE,
            value=20,
            min_order_amount=500,
            max_discount_amount=150,
            uses_per_user=1,
            valid_from=start,
        ),
        Coupon(
            id="cpn-flat100",
            code="FLAT100",
            discount_kind=DiscountKind.FIXED,
            value=100,
            min_order_amount=999,
            uses_per_user=3,
            max_total_uses=1000,
            valid_from=start,
            valid_to=datetime.now(timezone.utc) + timedelta(days=365),
        ),
        Coupon(
            id="cpn-loom10",
            code="LOOM10",
            discount_kind=DiscountKind.PERCENTAGE,
            value=10,
            uses_per_user=2,
            valid_from=start,
            seller_id="seller-loom",
        ),
    ]
    return {c.code: c for c in coupons}


class CouponDatabase:
    """In-memory coupons and their redemption records"""

    def __init__(self, coupons: Optional[dict[str, Coupon]] = None):
        self.coupons: dict[str, Coupon] = {
            c.code.upper(): c for c in (coupons or {}).values()
        }
        # order_id -> record; one redemption per order
        self.usage: dict[str, CouponUsageRecord] = {}
        self._lock = threading.Lock()

    def add_coupon(self, coupon: Coupon) -> Coupon:
        with self._lock:
            self.coupons[coupon.code.upper()] = coupon
        return coupon

    def get_active_coupon(self, code: str) -> Optional[Coupon]:
        """Look up an active coupon by its (case-insensitive) code"""
        coupon = self.coupons.get(code.strip().upper())
        if not coupon or not coupon.active:
            return None
        return coupon

    def get_coupon_by_id(self, coupon_id: str) -> Optional[Coupon]:
        return next((c for c in self.coupons.values() if c.id == coupon_id), None)

    def count_usage(self, coupon_id: str, user_id: Optional[str] = None) -> int:
        """Count redemptions of a coupon, optionally for one user"""
        with self._lock:
            return self._count(coupon_id, user_id)

    def _count(self, coupon_id: str, user_id: Optional[str]) -> int:
        return sum(
            1 for r in self.usage.values()
            if r.coupon_id == coupon_id and (user_id is None or r.user_id == user_id)
        )

    def claim_usage(
        self,
        record: CouponUsageRecord,
        uses_per_user: int,
        max_total_uses: Optional[int] = None,
    ) -> CouponUsageRecord:
        """
        Insert a usage record only if the coupon's caps still allow it.

        Count and insert happen in one critical section, so two concurrent
        checkouts at the limit cannot both succeed. Claiming again for an
        order that already holds a record returns that record.

        Raises:
            CouponUsageLimitReached: per-user or global cap already met
        """
        with self._lock:
            existing = self.usage.get(record.order_id)
            if existing:
                return existing

            if self._count(record.coupon_id, record.user_id) >= uses_per_user:
                raise CouponUsageLimitReached(
                    "You have already used this coupon the maximum number of times"
                )
            if max_total_uses is not None and self._count(record.coupon_id, None) >= max_total_uses:
                raise CouponUsageLimitReached(
                    "This coupon has reached its maximum usage limit"
                )

            self.usage[record.order_id] = record
            return record

    def release_usage(self, order_id: str) -> bool:
        """Drop the claim held by an order that was never committed"""
        with self._lock:
            return self.usage.pop(order_id, None) is not None

    def get_usage_for_order(self, order_id: str) -> Optional[CouponUsageRecord]:
        return self.usage.get(order_id)


# Singleton instance
coupon_db = CouponDatabase(_demo_coupons() if settings.seed_demo_data else {})
