"""
Post-commit side effects of a checkout.

Every operation here is keyed by the order, so running it twice for the same
order has the same effect as running it once. That lets the checkout and the
reconciliation retry share them.
"""

import logging
from datetime import datetime, timezone

from ..database.carts import CartDatabase
from ..database.coupons import CouponDatabase
from ..database.wallets import WalletDatabase
from ..models.checkout import Order
from ..models.coupon import CouponUsageRecord
from ..models.wallet import WalletLedgerEntry
from .errors import CouponUsageLimitReached
from .stock import StockGuard

logger = logging.getLogger(__name__)

ORDER_REFERENCE = "order"


class OrderSideEffects:
    """Wallet debit, coupon usage, cart clear and stock commit for an order"""

    def __init__(
        self,
        wallets: WalletDatabase,
        coupons: CouponDatabase,
        carts: CartDatabase,
        stock_guard: StockGuard,
    ):
        self.wallets = wallets
        self.coupons = coupons
        self.carts = carts
        self.stock_guard = stock_guard

    def debit_wallet(self, order: Order) -> WalletLedgerEntry:
        """Debit wallet_used against the balance at debit time"""
        entry = self.wallets.debit(
            user_id=order.user_id,
            amount=order.wallet_used,
            reference_type=ORDER_REFERENCE,
            reference_id=order.id,
            description=f"Used for order {order.order_number}",
        )
        logger.info(
            f"Wallet debited {order.wallet_used:.2f} for {order.order_number}, "
            f"balance now {entry.balance_after:.2f}"
        )
        return entry

    def record_coupon_usage(self, order: Order) -> CouponUsageRecord:
        """Claim (or re-assert) the coupon usage record for an order"""
        existing = self.coupons.get_usage_for_order(order.id)
        if existing:
            return existing

        coupon = self.coupons.get_coupon_by_id(order.coupon_id)
        if not coupon:
            raise CouponUsageLimitReached(f"Coupon {order.coupon_id} no longer exists")

        return self.coupons.claim_usage(
            CouponUsageRecord(
                coupon_id=coupon.id,
                user_id=order.user_id,
                order_id=order.id,
                discount_amount=order.coupon_discount,
                created_at=datetime.now(timezone.utc),
            ),
            uses_per_user=coupon.uses_per_user,
            max_total_uses=coupon.max_total_uses,
        )

    def clear_cart(self, order: Order) -> None:
        self.carts.clear_cart(order.user_id)

    def commit_stock(self, order: Order) -> None:
        self.stock_guard.commit_stock(order)
