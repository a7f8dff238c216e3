# Database modules

from .products import product_db, ProductDatabase
from .carts import cart_db, CartDatabase
from .orders import order_db, OrderDatabase
from .coupons import coupon_db, CouponDatabase
from .wallets import wallet_db, WalletDatabase
from .reconciliation import reconciliation_db, ReconciliationDatabase

__all__ = [
    "product_db",
    "ProductDatabase",
    "cart_db",
    "CartDatabase",
    "order_db",
    "OrderDatabase",
    "coupon_db",
    "CouponDatabase",
    "wallet_db",
    "WalletDatabase",
    "reconciliation_db",
    "ReconciliationDatabase",
]
