"""Stock guard and stock commitment"""

import logging
from collections import Counter
from typing import Iterable

from ..database.products import ProductDatabase
from ..models.checkout import LineItemRequest, Order
from ..models.product import ProductSnapshot
from .errors import InsufficientStock, ProductNotFound

logger = logging.getLogger(__name__)


class StockGuard:
    """Re-validates requested quantities against current stock"""

    def __init__(self, products: ProductDatabase):
        self.products = products

    def check(self, items: Iterable[LineItemRequest]) -> dict[str, ProductSnapshot]:
        """
        Fetch fresh snapshots and verify every product can cover its quantity.

        Lines for the same product (e.g. different variants) are summed.

        Returns:
            Snapshots keyed by product id, for pricing

        Raises:
            ProductNotFound: a referenced product does not exist
            InsufficientStock: requested quantity exceeds available stock
        """
        requested: Counter[str] = Counter()
        for item in items:
            requested[item.product_id] += item.quantity

        snapshots = self.products.get_snapshots(requested.keys())

        for product_id, quantity in requested.items():
            snapshot = snapshots.get(product_id)
            if not snapshot:
                raise ProductNotFound(product_id)
            if quantity > snapshot.available_stock:
                raise InsufficientStock(
                    product_id=product_id,
                    title=snapshot.title,
                    requested=quantity,
                    available=snapshot.available_stock,
                )

        return snapshots

    def commit_stock(self, order: Order) -> None:
        """
        Take stock for every line of an order.

        All lines are decremented together under one conditional check, and
        an order that already committed its stock is not charged again.

        Raises:
            InsufficientStock: a line can no longer be covered; nothing is taken
        """
        short = self.products.commit_order_stock(
            order.id, ((item.product_id, item.quantity) for item in order.items)
        )
        if short is None:
            return

        requested = sum(i.quantity for i in order.items if i.product_id == short)
        title = next(i.title for i in order.items if i.product_id == short)
        product = self.products.get_product(short)
        logger.warning(
            f"Stock exhausted for {short} while committing order {order.order_number}"
        )
        raise InsufficientStock(
            product_id=short,
            title=title,
            requested=requested,
            available=product.stock if product else 0,
        )
