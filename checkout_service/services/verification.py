"""Gateway payment confirmation"""

import logging
from datetime import datetime, timezone

from ..database.orders import OrderDatabase
from ..models.checkout import (
    GatewayMeta,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    VerifyPaymentRequest,
)
from ..models.reconciliation import TaskKind
from .errors import InsufficientStock, OrderNotFound, PaymentVerificationFailed
from .gateway_client import GatewayClient
from .reconciliation import ReconciliationService
from .side_effects import OrderSideEffects

logger = logging.getLogger(__name__)


class PaymentConfirmation:
    """Marks gateway orders paid and commits their stock"""

    def __init__(
        self,
        orders: OrderDatabase,
        gateway: GatewayClient,
        side_effects: OrderSideEffects,
        reconciliation: ReconciliationService,
    ):
        self.orders = orders
        self.gateway = gateway
        self.side_effects = side_effects
        self.reconciliation = reconciliation

    def confirm(self, user_id: str, request: VerifyPaymentRequest) -> Order:
        """
        Verify the gateway signature and settle the order.

        Confirming an order that is already paid returns it unchanged.

        Raises:
            OrderNotFound: unknown order or owned by another user
            PaymentVerificationFailed: wrong method, gateway order or signature
        """
        order = self.orders.get_order(request.order_id)
        if not order or order.user_id != user_id:
            raise OrderNotFound("Order not found")

        meta = order.payment_meta
        if order.payment_method != PaymentMethod.GATEWAY or not isinstance(meta, GatewayMeta):
            raise PaymentVerificationFailed("Order was not placed for online payment")
        if meta.gateway_order_id != request.gateway_order_id:
            raise PaymentVerificationFailed("Gateway order does not match this order")

        if not self.gateway.verify_payment_signature(
            request.gateway_order_id,
            request.gateway_payment_id,
            request.gateway_signature,
        ):
            logger.warning(f"Invalid payment signature for order {order.order_number}")
            raise PaymentVerificationFailed("Invalid payment signature")

        if order.payment_status == PaymentStatus.PAID:
            return order

        updated = self.orders.update_payment(
            order.id,
            status=OrderStatus.PAID,
            payment_status=PaymentStatus.PAID,
            payment_meta=meta.model_copy(
                update={
                    "gateway_payment_id": request.gateway_payment_id,
                    "verified_at": datetime.now(timezone.utc),
                }
            ),
            expected_payment_status=PaymentStatus.PENDING,
        )
        if not updated:
            # Confirmed concurrently by another request
            return self.orders.get_order(order.id) or order

        logger.info(f"Payment {request.gateway_payment_id} verified for {order.order_number}")

        try:
            self.side_effects.commit_stock(updated)
        except InsufficientStock as e:
            self.reconciliation.flag(updated, TaskKind.STOCK_COMMIT, e, {"product_id": e.product_id})

        return updated
