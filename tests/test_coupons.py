"""Tests for coupon evaluation and usage claims"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from checkout_service.database import CouponDatabase
from checkout_service.models import Coupon, CouponUsageRecord, DiscountKind
from checkout_service.services.coupons import (
    CouponEvaluator,
    CouponResult,
    NotApplicable,
    Rejected,
    calculate_discount,
)
from checkout_service.services.errors import CouponUsageLimitReached

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_coupon(**overrides):
    fields = dict(
        id="cpn-1",
        code="SAVE20",
        discount_kind=DiscountKind.PERCENTAGE,
        value=20,
        min_order_amount=500,
        max_discount_amount=150,
        uses_per_user=1,
        valid_from=START,
    )
    fields.update(overrides)
    return Coupon(**fields)


def usage(coupon_id="cpn-1", user_id="user-1", order_id="order-1"):
    return CouponUsageRecord(
        coupon_id=coupon_id,
        user_id=user_id,
        order_id=order_id,
        discount_amount=10,
        created_at=NOW,
    )


def evaluator_for(*coupons):
    db = CouponDatabase({c.code: c for c in coupons})
    return CouponEvaluator(db), db


def test_percentage_discount_is_capped():
    evaluator, _ = evaluator_for(make_coupon())

    outcome = evaluator.evaluate("SAVE20", 1000.0, "user-1", NOW)

    assert isinstance(outcome, CouponResult)
    assert outcome.discount_amount == 150.0
    assert outcome.coupon_id == "cpn-1"


def test_code_lookup_is_case_insensitive():
    evaluator, _ = evaluator_for(make_coupon())

    outcome = evaluator.evaluate("  save20 ", 600.0, "user-1", NOW)

    assert isinstance(outcome, CouponResult)
    assert outcome.discount_amount == 120.0


def test_unknown_or_inactive_code_is_not_applicable():
    evaluator, _ = evaluator_for(make_coupon(), make_coupon(id="cpn-2", code="OFF", active=False))

    assert isinstance(evaluator.evaluate("NOPE", 1000.0, "user-1", NOW), NotApplicable)
    assert isinstance(evaluator.evaluate("OFF", 1000.0, "user-1", NOW), NotApplicable)


@pytest.mark.parametrize(
    "overrides, subtotal, reason",
    [
        ({"valid_to": NOW - timedelta(days=1)}, 1000.0, "expired"),
        ({"valid_from": NOW + timedelta(days=1)}, 1000.0, "not_yet_valid"),
        ({}, 499.99, "below_minimum"),
        ({"seller_id": "seller-loom"}, 1000.0, "seller_mismatch"),
    ],
)
def test_guards_reject_with_reason(overrides, subtotal, reason):
    evaluator, _ = evaluator_for(make_coupon(**overrides))

    outcome = evaluator.evaluate("SAVE20", subtotal, "user-1", NOW, seller_id="seller-aurum")

    assert isinstance(outcome, Rejected)
    assert outcome.reason == reason


def test_per_user_limit():
    evaluator, db = evaluator_for(make_coupon())
    db.claim_usage(usage(), uses_per_user=1)

    outcome = evaluator.evaluate("SAVE20", 1000.0, "user-1", NOW)
    assert isinstance(outcome, Rejected)
    assert outcome.reason == "usage_limit_reached"

    # Another user is unaffected
    assert isinstance(evaluator.evaluate("SAVE20", 1000.0, "user-2", NOW), CouponResult)


def test_global_cap_exhausted():
    evaluator, db = evaluator_for(make_coupon(max_total_uses=1))
    db.claim_usage(usage(user_id="someone-else"), uses_per_user=1, max_total_uses=1)

    outcome = evaluator.evaluate("SAVE20", 1000.0, "user-1", NOW)

    assert isinstance(outcome, Rejected)
    assert outcome.reason == "exhausted"


def test_seller_scoped_coupon_applies_to_its_seller():
    evaluator, _ = evaluator_for(make_coupon(seller_id="seller-loom"))

    outcome = evaluator.evaluate("SAVE20", 1000.0, "user-1", NOW, seller_id="seller-loom")

    assert isinstance(outcome, CouponResult)


def test_fixed_discount_never_exceeds_subtotal():
    coupon = make_coupon(discount_kind=DiscountKind.FIXED, value=300, min_order_amount=0)

    assert calculate_discount(coupon, 1000.0) == 300.0
    assert calculate_discount(coupon, 120.0) == 120.0


def test_percentage_discount_rounds_to_paise():
    coupon = make_coupon(value=10, max_discount_amount=None)

    assert calculate_discount(coupon, 99.99) == 10.0


def test_claim_usage_is_idempotent_per_order():
    db = CouponDatabase({"SAVE20": make_coupon()})

    first = db.claim_usage(usage(), uses_per_user=1)
    again = db.claim_usage(usage(), uses_per_user=1)

    assert again is first
    assert db.count_usage("cpn-1", "user-1") == 1


def test_release_usage_frees_the_claim():
    db = CouponDatabase({"SAVE20": make_coupon()})
    db.claim_usage(usage(), uses_per_user=1)

    assert db.release_usage("order-1") is True
    assert db.count_usage("cpn-1") == 0
    assert db.release_usage("order-1") is False


def test_concurrent_claims_at_the_limit_admit_exactly_one():
    db = CouponDatabase({"SAVE20": make_coupon()})

    def claim(n):
        try:
            db.claim_usage(usage(order_id=f"order-{n}"), uses_per_user=1)
            return True
        except CouponUsageLimitReached:
            return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(claim, range(16)))

    assert results.count(True) == 1
    assert db.count_usage("cpn-1", "user-1") == 1
