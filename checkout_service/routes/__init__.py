# API Routes

from .checkout import router as checkout_router
from .cart import router as cart_router
from .reconciliation import router as reconciliation_router

__all__ = ["checkout_router", "cart_router", "reconciliation_router"]
