"""Reconciliation of side effects that failed after an order was committed"""

import logging
from typing import Any, Optional

from ..database.orders import OrderDatabase
from ..database.reconciliation import ReconciliationDatabase
from ..models.checkout import Order
from ..models.reconciliation import ReconciliationTask, RetrySummary, TaskKind
from .side_effects import OrderSideEffects

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Flags partial-commitment failures and retries them"""

    def __init__(
        self,
        queue: ReconciliationDatabase,
        orders: OrderDatabase,
        side_effects: OrderSideEffects,
    ):
        self.queue = queue
        self.orders = orders
        self.side_effects = side_effects

    def flag(
        self,
        order: Order,
        kind: TaskKind,
        error: Exception,
        payload: Optional[dict[str, Any]] = None,
    ) -> ReconciliationTask:
        """Record a failed post-commit step for an operator or a later retry"""
        task = self.queue.record_failure(
            order_id=order.id,
            user_id=order.user_id,
            kind=kind,
            error=str(error),
            payload=payload,
        )
        logger.error(
            f"Reconciliation needed: {kind.value} failed for order {order.order_number} "
            f"(attempt {task.attempts}): {error}"
        )
        return task

    def _run(self, kind: TaskKind, order: Order) -> None:
        if kind == TaskKind.WALLET_DEBIT:
            self.side_effects.debit_wallet(order)
        elif kind == TaskKind.COUPON_USAGE:
            self.side_effects.record_coupon_usage(order)
        elif kind == TaskKind.CART_CLEAR:
            self.side_effects.clear_cart(order)
        elif kind == TaskKind.STOCK_COMMIT:
            self.side_effects.commit_stock(order)

    def retry_pending(self) -> RetrySummary:
        """Re-run every open task through its idempotent operation"""
        summary = RetrySummary()

        for task in self.queue.list_open():
            order = self.orders.get_order(task.order_id)
            if not order:
                logger.warning(f"Reconciliation task {task.task_id} references missing order {task.order_id}")
                summary.still_failing.append(task.task_id)
                continue

            try:
                self._run(task.kind, order)
            except Exception as e:
                self.flag(order, task.kind, e, task.payload)
                summary.still_failing.append(task.task_id)
                continue

            self.queue.mark_resolved(task.task_id)
            logger.info(f"Reconciled {task.kind.value} for order {order.order_number}")
            summary.resolved.append(task.task_id)

        return summary
