"""Order storage for checkout service"""

import threading
from datetime import datetime, timezone
from typing import Optional

from ..models.checkout import Order, OrderStatus, PaymentStatus, PaymentMeta
from ..services.errors import PersistenceError


class OrderDatabase:
    """In-memory order storage"""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    def insert_order(self, order: Order) -> Order:
        """
        Persist a new order row in a single write.

        Order ids, order numbers and (user, idempotency key) pairs are unique.
        """
        with self._lock:
            if order.id in self.orders:
                raise PersistenceError(f"Order {order.id} already exists")
            for existing in self.orders.values():
                if existing.order_number == order.order_number:
                    raise PersistenceError(f"Order number {order.order_number} already exists")
                if (
                    order.idempotency_key
                    and existing.user_id == order.user_id
                    and existing.idempotency_key == order.idempotency_key
                ):
                    raise PersistenceError("Duplicate idempotency key")
            self.orders[order.id] = order
            return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Order]:
        with self._lock:
            return next(
                (
                    o for o in self.orders.values()
                    if o.user_id == user_id and o.idempotency_key == key
                ),
                None,
            )

    def update_payment(
        self,
        order_id: str,
        status: OrderStatus,
        payment_status: PaymentStatus,
        payment_meta: PaymentMeta,
        expected_payment_status: Optional[PaymentStatus] = None,
    ) -> Optional[Order]:
        """
        Record a payment transition; monetary fields are never touched.

        With expected_payment_status the update only applies if the order is
        still in that state. Returns None when no row was affected.
        """
        with self._lock:
            order = self.orders.get(order_id)
            if not order:
                return None
            if expected_payment_status and order.payment_status != expected_payment_status:
                return None
            updated = order.model_copy(
                update={
                    "status": status,
                    "payment_status": payment_status,
                    "payment_meta": payment_meta,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self.orders[order_id] = updated
            return updated

    def list_orders(self, user_id: Optional[str] = None, limit: int = 50) -> list[Order]:
        """List recent orders, newest first"""
        orders = [
            o for o in self.orders.values()
            if user_id is None or o.user_id == user_id
        ]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit]


# Singleton instance
order_db = OrderDatabase()
