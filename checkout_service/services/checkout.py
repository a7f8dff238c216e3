"""
Order Composer

Turns a cart into a single priced order and sequences its side effects:

1. stock guard
2. pricing ledger and shipping fee
3. coupon evaluation
4. wallet settlement
5. total
6. payment initiation, the last step that may fail cleanly
7. commit: coupon claim and order row (durability boundary)
8. stock commit, for orders already paid
9. wallet debit
10. coupon usage record
11. cart clear

Steps 8 to 11 run after the commit. They are idempotent per order and are
queued for reconciliation instead of failing the checkout. Gateway orders
still awaiting payment commit their stock when the payment is verified.

Nothing is written before step 7, so any failure up to and including
payment initiation leaves no trace and the request can simply be resent.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..core.config import Settings
from ..database.carts import CartDatabase
from ..database.coupons import CouponDatabase
from ..database.orders import OrderDatabase
from ..database.products import ProductDatabase
from ..database.reconciliation import ReconciliationDatabase
from ..database.wallets import WalletDatabase
from ..models.checkout import CheckoutRequest, Order, PaymentStatus
from ..models.coupon import CouponUsageRecord
from ..models.reconciliation import TaskKind
from .coupons import CouponEvaluator, CouponResult, NotApplicable, Rejected
from .errors import (
    CouponRejected,
    CouponUsageLimitReached,
    InsufficientStock,
    PersistenceError,
)
from .gateway_client import GatewayClient
from .payments import PaymentDirective, PaymentInitiator
from .pricing import price, shipping_fee
from .reconciliation import ReconciliationService
from .side_effects import OrderSideEffects
from .stock import StockGuard
from .wallet import settle

logger = logging.getLogger(__name__)

# Tolerance for float rounding when checking totals
MONEY_EPSILON = 0.01


@dataclass
class CheckoutResult:
    order: Order
    gateway_order_id: Optional[str] = None
    gateway_key_id: Optional[str] = None
    replayed: bool = False


def generate_order_number() -> str:
    """Human-traceable, globally unique order number"""
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


def validate_totals(
    subtotal: float,
    taxes: float,
    shipping: float,
    coupon_discount: float,
    wallet_used: float,
    total: float,
) -> None:
    """Reject amounts that break the order's monetary invariants"""
    expected = subtotal + taxes + shipping - coupon_discount - wallet_used
    if abs(total - expected) > MONEY_EPSILON:
        raise PersistenceError(f"Order total {total} does not match its components ({expected})")
    if total < 0:
        raise PersistenceError(f"Order total {total} is negative")
    if wallet_used - (subtotal + taxes - coupon_discount) > MONEY_EPSILON:
        raise PersistenceError("Wallet amount exceeds the payable remainder")


class CheckoutService:
    """Runs one checkout from cart to committed order"""

    def __init__(
        self,
        products: ProductDatabase,
        coupons: CouponDatabase,
        wallets: WalletDatabase,
        carts: CartDatabase,
        orders: OrderDatabase,
        reconciliation_queue: ReconciliationDatabase,
        gateway: GatewayClient,
        settings: Settings,
    ):
        self.coupons = coupons
        self.wallets = wallets
        self.orders = orders
        self.gateway = gateway
        self.settings = settings

        self.stock_guard = StockGuard(products)
        self.coupon_evaluator = CouponEvaluator(coupons)
        self.payment_initiator = PaymentInitiator(gateway, currency=settings.currency)
        self.side_effects = OrderSideEffects(wallets, coupons, carts, self.stock_guard)
        self.reconciliation = ReconciliationService(
            reconciliation_queue, orders, self.side_effects
        )

    async def checkout(
        self,
        user_id: str,
        request: CheckoutRequest,
        idempotency_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckoutResult:
        """
        Compose, price and commit an order.

        Args:
            user_id: Authenticated user placing the order
            request: Checkout payload from the storefront
            idempotency_key: Optional client key; a repeat returns the first order
            now: Evaluation time for coupon windows (defaults to current UTC)

        Raises:
            CheckoutError: any failure before the order row is committed
        """
        now = now or datetime.now(timezone.utc)

        if idempotency_key:
            existing = self.orders.find_by_idempotency_key(user_id, idempotency_key)
            if existing:
                logger.info(f"Replaying order {existing.order_number} for idempotency key")
                return self._result(existing, replayed=True)

        # 1. Stock, from fresh snapshots
        snapshots = self.stock_guard.check(request.items)

        # 2. Pricing
        pricing = price(request.items, snapshots, self.settings.default_tax_rate_percent)
        shipping = shipping_fee(pricing.subtotal, self.settings)
        seller_id = pricing.lines[0].seller_id if pricing.lines else None

        # 3. Coupon
        coupon_result: Optional[CouponResult] = None
        if request.coupon_code and request.coupon_code.strip():
            coupon_result = self._evaluate_coupon(
                request.coupon_code, pricing.subtotal, user_id, now, seller_id
            )
        coupon_discount = coupon_result.discount_amount if coupon_result else 0.0

        # 4. Wallet
        payable_remainder = round(pricing.subtotal + pricing.taxes - coupon_discount, 2)
        wallet_used = 0.0
        if request.wallet_amount > 0:
            wallet_used = settle(
                request.wallet_amount,
                self.wallets.get_balance(user_id),
                payable_remainder,
            )

        # 5. Total
        total = round(
            pricing.subtotal + pricing.taxes + shipping - coupon_discount - wallet_used, 2
        )
        validate_totals(
            pricing.subtotal, pricing.taxes, shipping, coupon_discount, wallet_used, total
        )

        # 6. Payment
        order_id = str(uuid.uuid4())
        order_number = generate_order_number()
        directive = await self.payment_initiator.initiate(
            order_number=order_number,
            total=total,
            method=request.payment_method,
            user_id=user_id,
        )

        # 7. Commit
        created_at = datetime.now(timezone.utc)
        order = Order(
            id=order_id,
            order_number=order_number,
            user_id=user_id,
            seller_id=seller_id,
            items=pricing.lines,
            subtotal=pricing.subtotal,
            tax_breakdown=pricing.tax_breakdown,
            taxes=pricing.taxes,
            shipping=shipping,
            coupon_id=coupon_result.coupon_id if coupon_result else None,
            coupon_discount=coupon_discount,
            wallet_used=wallet_used,
            total=total,
            currency=self.settings.currency,
            status=directive.order_status,
            payment_status=directive.payment_status,
            payment_method=request.payment_method,
            payment_meta=directive.payment_meta,
            shipping_address=request.shipping_address,
            billing_address=request.billing_address or request.shipping_address,
            gift_wrap=request.gift_wrap,
            gift_message=request.gift_message,
            notes=request.notes,
            idempotency_key=idempotency_key,
            created_at=created_at,
            updated_at=created_at,
        )
        replay = self._commit(order, coupon_result, directive)
        if replay:
            return self._result(replay, replayed=True)

        logger.info(
            f"Order {order.order_number} created for user {user_id}: total {order.total:.2f} "
            f"{order.currency} via {order.payment_method.value}"
        )

        # 8-11. Post-commit
        self._apply_side_effects(order)

        return self._result(order)

    def _evaluate_coupon(
        self,
        code: str,
        subtotal: float,
        user_id: str,
        now: datetime,
        seller_id: Optional[str],
    ) -> CouponResult:
        outcome = self.coupon_evaluator.evaluate(code, subtotal, user_id, now, seller_id)
        if isinstance(outcome, NotApplicable):
            logger.info(f"Coupon {code!r} not found for user {user_id}")
            raise CouponRejected("Invalid coupon code", reason="not_found")
        if isinstance(outcome, Rejected):
            logger.info(f"Coupon {code!r} rejected for user {user_id}: {outcome.reason}")
            raise CouponRejected(outcome.message, reason=outcome.reason)
        return outcome

    def _commit(
        self,
        order: Order,
        coupon_result: Optional[CouponResult],
        directive: PaymentDirective,
    ) -> Optional[Order]:
        """
        Claim the coupon and insert the order row.

        Returns an existing order when a concurrent request with the same
        idempotency key committed first, otherwise None.
        """
        claimed = False
        if coupon_result:
            try:
                self.coupons.claim_usage(
                    CouponUsageRecord(
                        coupon_id=coupon_result.coupon_id,
                        user_id=order.user_id,
                        order_id=order.id,
                        discount_amount=coupon_result.discount_amount,
                        created_at=order.created_at,
                    ),
                    uses_per_user=coupon_result.coupon.uses_per_user,
                    max_total_uses=coupon_result.coupon.max_total_uses,
                )
                claimed = True
            except CouponUsageLimitReached as e:
                replay = self._find_replay(order)
                if replay:
                    return replay
                self._log_abandoned_payment(order, directive)
                raise CouponRejected(e.message, reason="usage_limit_reached") from e

        try:
            self.orders.insert_order(order)
        except PersistenceError:
            if claimed:
                self.coupons.release_usage(order.id)
            replay = self._find_replay(order)
            if replay:
                return replay
            self._log_abandoned_payment(order, directive)
            raise

        return None

    def _find_replay(self, order: Order) -> Optional[Order]:
        if not order.idempotency_key:
            return None
        return self.orders.find_by_idempotency_key(order.user_id, order.idempotency_key)

    def _log_abandoned_payment(self, order: Order, directive: PaymentDirective) -> None:
        if directive.gateway_order_id:
            logger.warning(
                f"Gateway order {directive.gateway_order_id} for {order.order_number} "
                "abandoned; no order was committed"
            )

    def _apply_side_effects(self, order: Order) -> None:
        """Steps after the commit never fail the checkout; failures are queued"""
        if order.payment_status == PaymentStatus.PAID:
            try:
                self.side_effects.commit_stock(order)
            except InsufficientStock as e:
                self.reconciliation.flag(
                    order, TaskKind.STOCK_COMMIT, e, {"product_id": e.product_id}
                )

        if order.wallet_used > 0:
            try:
                self.side_effects.debit_wallet(order)
            except Exception as e:
                self.reconciliation.flag(
                    order, TaskKind.WALLET_DEBIT, e, {"amount": order.wallet_used}
                )

        if order.coupon_id:
            try:
                self.side_effects.record_coupon_usage(order)
            except Exception as e:
                self.reconciliation.flag(
                    order, TaskKind.COUPON_USAGE, e, {"coupon_id": order.coupon_id}
                )

        try:
            self.side_effects.clear_cart(order)
        except Exception as e:
            self.reconciliation.flag(order, TaskKind.CART_CLEAR, e)

    def _result(self, order: Order, replayed: bool = False) -> CheckoutResult:
        gateway_order_id = getattr(order.payment_meta, "gateway_order_id", None)
        return CheckoutResult(
            order=order,
            gateway_order_id=gateway_order_id,
            gateway_key_id=self.gateway.key_id if gateway_order_id else None,
            replayed=replayed,
        )
