"""Product storage for checkout service"""

import threading
from typing import Iterable, Optional

from ..core.config import settings
from ..models.product import Product, ProductCategory, ProductSnapshot

# Demo catalog
PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        title="Kundan Choker Necklace Set",
        description="Gold-plated kundan choker with matching jhumkas.",
        price=1499.00,
        tax_slab=3,
        category=ProductCategory.JEWELLERY,
        seller_id="seller-aurum",
        stock=25,
    ),
    "prod-002": Product(
        id="prod-002",
        title="Oxidised Silver Jhumkas",
        description="Handcrafted oxidised silver drop earrings.",
        price=449.00,
        tax_slab=3,
        category=ProductCategory.JEWELLERY,
        seller_id="seller-aurum",
        stock=80,
    ),
    "prod-003": Product(
        id="prod-003",
        title="Chanderi Silk Kurta",
        description="Straight-cut chanderi kurta with zari border.",
        price=1899.00,
        tax_slab=12,
        category=ProductCategory.APPAREL,
        seller_id="seller-loom",
        stock=40,
    ),
    "prod-004": Product(
        id="prod-004",
        title="Block Print Cotton Dupatta",
        description="Hand block printed mulmul dupatta.",
        price=599.00,
        tax_slab=5,
        category=ProductCategory.APPAREL,
        seller_id="seller-loom",
        stock=60,
    ),
    "prod-005": Product(
        id="prod-005",
        title="Embroidered Potli Bag",
        description="Velvet potli with zardozi embroidery.",
        price=799.00,
        tax_slab=18,
        category=ProductCategory.ACCESSORIES,
        seller_id="seller-aurum",
        stock=30,
    ),
    "prod-006": Product(
        id="prod-006",
        title="Festive Kurta and Jhumka Combo",
        description="Chanderi kurta paired with oxidised jhumkas.",
        price=2199.00,
        category=ProductCategory.COMBO,
        seller_id="seller-loom",
        stock=15,
    ),
}


class ProductDatabase:
    """In-memory product storage with atomic stock counters"""

    def __init__(self, products: Optional[dict[str, Product]] = None):
        source = PRODUCTS if products is None else products
        self.products = {pid: p.model_copy() for pid, p in source.items()}
        # orders whose stock has already been taken
        self.committed_orders: set[str] = set()
        self._lock = threading.Lock()

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return self.products.get(product_id)

    def add_product(self, product: Product) -> Product:
        with self._lock:
            self.products[product.id] = product
        return product

    def get_snapshots(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        """
        Read current price, tax and stock for the given products.

        Snapshots are detached copies taken under the lock; unknown ids are
        simply absent from the result.
        """
        snapshots: dict[str, ProductSnapshot] = {}
        with self._lock:
            for product_id in set(product_ids):
                product = self.products.get(product_id)
                if not product:
                    continue
                snapshots[product_id] = ProductSnapshot(
                    id=product.id,
                    title=product.title,
                    unit_price=product.price,
                    tax_rate_percent=product.tax_slab,
                    seller_id=product.seller_id,
                    available_stock=product.stock,
                )
        return snapshots

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """
        Conditionally remove stock.

        Equivalent to ``UPDATE products SET stock = stock - qty WHERE id = ?
        AND stock >= qty``. Returns False when no row was affected.
        """
        with self._lock:
            product = self.products.get(product_id)
            if not product or product.stock < quantity:
                return False
            product.stock -= quantity
            return True

    def commit_order_stock(self, order_id: str, lines: Iterable[tuple[str, int]]) -> Optional[str]:
        """
        Take stock for every line of an order in one step, at most once per order.

        Returns None on success (or when the order was already committed),
        otherwise the id of the first product that cannot cover its quantity;
        in that case nothing is taken.
        """
        requested: dict[str, int] = {}
        for product_id, quantity in lines:
            requested[product_id] = requested.get(product_id, 0) + quantity

        with self._lock:
            if order_id in self.committed_orders:
                return None
            for product_id, quantity in requested.items():
                product = self.products.get(product_id)
                if not product or product.stock < quantity:
                    return product_id
            for product_id, quantity in requested.items():
                self.products[product_id].stock -= quantity
            self.committed_orders.add(order_id)
            return None


# Singleton instance
product_db = ProductDatabase(PRODUCTS if settings.seed_demo_data else {})
