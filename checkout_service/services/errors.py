"""Checkout error taxonomy"""

from typing import Optional


class CheckoutError(Exception):
    """Base exception for checkout failures"""

    status_code = 400
    code = "checkout_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


# ==================== Validation ====================

class ProductNotFound(CheckoutError):
    status_code = 404
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InvalidPaymentMethod(CheckoutError):
    code = "invalid_payment_method"


class OrderNotFound(CheckoutError):
    status_code = 404
    code = "order_not_found"


# ==================== Business rules ====================

class InsufficientStock(CheckoutError):
    code = "insufficient_stock"

    def __init__(self, product_id: str, title: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {title}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CouponRejected(CheckoutError):
    """Coupon could not be applied; code carries the reason"""
    code = "coupon_rejected"

    def __init__(self, message: str, reason: str):
        super().__init__(message, code=f"coupon_{reason}")
        self.reason = reason


class CouponUsageLimitReached(CheckoutError):
    status_code = 409
    code = "coupon_usage_limit_reached"


class WalletDoesNotCoverTotal(CheckoutError):
    code = "wallet_does_not_cover_total"


class InsufficientWalletBalance(CheckoutError):
    status_code = 409
    code = "insufficient_wallet_balance"


class PaymentVerificationFailed(CheckoutError):
    code = "payment_verification_failed"


# ==================== Infrastructure ====================

class GatewayError(CheckoutError):
    """Payment gateway unreachable or returned an error"""
    status_code = 502
    code = "gateway_error"


class GatewayNotConfigured(GatewayError):
    status_code = 503
    code = "gateway_not_configured"


class PersistenceError(CheckoutError):
    status_code = 500
    code = "persistence_error"
