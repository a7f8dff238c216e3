"""Cart storage for checkout service"""

import threading
from datetime import datetime, timezone
from typing import Any, Optional

from ..models.cart import Cart, CartItem


class CartDatabase:
    """In-memory carts keyed by user"""

    def __init__(self):
        self.carts: dict[str, Cart] = {}
        self._lock = threading.Lock()

    def get_cart(self, user_id: str) -> Cart:
        """Get the user's cart, creating an empty one if needed"""
        with self._lock:
            cart = self.carts.get(user_id)
            if not cart:
                cart = Cart(user_id=user_id, items=[], updated_at=datetime.now(timezone.utc))
                self.carts[user_id] = cart
            return cart

    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int = 1,
        variant: Optional[dict[str, Any]] = None,
    ) -> Cart:
        """Add an item to the cart, merging with an identical line"""
        cart = self.get_cart(user_id)
        variant = variant or {}
        with self._lock:
            existing_item = next(
                (
                    item for item in cart.items
                    if item.product_id == product_id and item.variant == variant
                ),
                None,
            )
            if existing_item:
                existing_item.quantity += quantity
            else:
                cart.items.append(
                    CartItem(product_id=product_id, variant=variant, quantity=quantity)
                )
            cart.updated_at = datetime.now(timezone.utc)
        return cart

    def remove_item(self, user_id: str, product_id: str) -> Cart:
        """Remove every line for a product"""
        cart = self.get_cart(user_id)
        with self._lock:
            cart.items = [i for i in cart.items if i.product_id != product_id]
            cart.updated_at = datetime.now(timezone.utc)
        return cart

    def clear_cart(self, user_id: str) -> Cart:
        """Clear all items from cart. Safe to repeat."""
        cart = self.get_cart(user_id)
        with self._lock:
            cart.items = []
            cart.updated_at = datetime.now(timezone.utc)
        return cart


# Singleton instance
cart_db = CartDatabase()
