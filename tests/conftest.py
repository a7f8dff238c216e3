import asyncio
from datetime import datetime, timezone

import pytest

from checkout_service.core.config import Settings
from checkout_service.database import (
    CartDatabase,
    CouponDatabase,
    OrderDatabase,
    ProductDatabase,
    ReconciliationDatabase,
    WalletDatabase,
)
from checkout_service.models import (
    CheckoutRequest,
    Coupon,
    DiscountKind,
    Product,
    ProductCategory,
)
from checkout_service.services.checkout import CheckoutService
from checkout_service.services.errors import GatewayError
from checkout_service.services.gateway_client import GatewayClient, GatewayOrder

USER_ID = "user-1"
GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_KEY_SECRET = "rzp_test_secret"
JWT_SECRET = "test-jwt-secret-for-checkout-service"
ADMIN_KEY = "test-admin-key"

ADDRESS = {
    "name": "Asha Verma",
    "phone": "9876543210",
    "address_line1": "12 MG Road",
    "city": "Jaipur",
    "state": "Rajasthan",
    "postal_code": "302001",
    "country": "IN",
}


class FakeGateway(GatewayClient):
    """Gateway double that yields to the event loop like a real network call"""

    def __init__(self, fail: bool = False, on_create=None):
        super().__init__(
            base_url="https://gateway.test/v1",
            key_id=GATEWAY_KEY_ID,
            key_secret=GATEWAY_KEY_SECRET,
        )
        self.fail = fail
        self.on_create = on_create
        self.calls: list[dict] = []

    async def create_order(self, amount, currency, receipt, notes=None):
        self.calls.append(
            {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes}
        )
        await asyncio.sleep(0)
        if self.on_create:
            self.on_create()
        if self.fail:
            raise GatewayError("Payment gateway unreachable")
        return GatewayOrder(
            id=f"order_test_{len(self.calls)}",
            amount=amount,
            currency=currency,
            receipt=receipt,
            status="created",
        )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        gateway_key_id=GATEWAY_KEY_ID,
        gateway_key_secret=GATEWAY_KEY_SECRET,
        auth_jwt_secret=JWT_SECRET,
        admin_api_key=ADMIN_KEY,
        free_shipping_threshold=999,
        shipping_flat_fee=100,
    )


@pytest.fixture
def products():
    catalog = {
        "p-kurta": Product(
            id="p-kurta",
            title="Cotton Kurta",
            price=1000.0,
            tax_slab=5,
            category=ProductCategory.APPAREL,
            seller_id="seller-loom",
            stock=10,
        ),
        "p-jhumka": Product(
            id="p-jhumka",
            title="Silver Jhumka",
            price=500.0,
            tax_slab=5,
            category=ProductCategory.JEWELLERY,
            seller_id="seller-aurum",
            stock=5,
        ),
        "p-ring": Product(
            id="p-ring",
            title="Toe Ring",
            price=250.0,
            tax_slab=3,
            category=ProductCategory.JEWELLERY,
            seller_id="seller-aurum",
            stock=3,
        ),
        "p-untaxed": Product(
            id="p-untaxed",
            title="Gift Card Sleeve",
            price=500.0,
            tax_slab=0,
            category=ProductCategory.ACCESSORIES,
            seller_id="seller-aurum",
            stock=50,
        ),
        "p-noslab": Product(
            id="p-noslab",
            title="Combo Box",
            price=200.0,
            category=ProductCategory.COMBO,
            seller_id="seller-loom",
            stock=50,
        ),
    }
    return ProductDatabase(catalog)


@pytest.fixture
def coupons():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return CouponDatabase(
        {
            "SAVE20": Coupon(
                id="cpn-save20",
                code="SAVE20",
                discount_kind=DiscountKind.PERCENTAGE,
                value=20,
                min_order_amount=500,
                max_discount_amount=150,
                uses_per_user=1,
                valid_from=start,
            ),
            "FLAT300": Coupon(
                id="cpn-flat300",
                code="FLAT300",
                discount_kind=DiscountKind.FIXED,
                value=300,
                uses_per_user=5,
                valid_from=start,
            ),
        }
    )


@pytest.fixture
def wallets():
    return WalletDatabase()


@pytest.fixture
def carts():
    return CartDatabase()


@pytest.fixture
def orders():
    return OrderDatabase()


@pytest.fixture
def reconciliation_queue():
    return ReconciliationDatabase()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def service(products, coupons, wallets, carts, orders, reconciliation_queue, gateway, settings):
    return CheckoutService(
        products=products,
        coupons=coupons,
        wallets=wallets,
        carts=carts,
        orders=orders,
        reconciliation_queue=reconciliation_queue,
        gateway=gateway,
        settings=settings,
    )


@pytest.fixture
def make_request():
    """Build a CheckoutRequest from (product_id, quantity) pairs"""

    def _make(items, payment_method="cod", **kwargs):
        return CheckoutRequest(
            items=[
                {"product_id": pid, "quantity": qty, "price": 1.0}
                for pid, qty in items
            ],
            shipping_address=ADDRESS,
            payment_method=payment_method,
            **kwargs,
        )

    return _make
