"""
Pricing Ledger

Prices line items from authoritative product snapshots. Prices supplied by
the client are never read here.
"""

from dataclasses import dataclass, field
from typing import Iterable

from ..core.config import Settings
from ..models.checkout import LineItemRequest, PricedLineItem
from ..models.product import ProductSnapshot
from .errors import ProductNotFound

DEFAULT_TAX_RATE_PERCENT = 5.0


@dataclass
class PricingResult:
    """Server-derived pricing for a cart"""
    lines: list[PricedLineItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax_breakdown: dict[str, float] = field(default_factory=dict)
    taxes: float = 0.0


def tax_slab_label(rate: float) -> str:
    """5.0 -> '5%', 2.5 -> '2.5%'"""
    return f"{rate:g}%"


def price(
    items: Iterable[LineItemRequest],
    snapshots: dict[str, ProductSnapshot],
    default_tax_rate: float = DEFAULT_TAX_RATE_PERCENT,
) -> PricingResult:
    """Compute subtotal, per-slab tax breakdown and total tax"""
    result = PricingResult()
    subtotal = 0.0
    taxes = 0.0
    breakdown: dict[str, float] = {}

    for item in items:
        snapshot = snapshots.get(item.product_id)
        if not snapshot:
            raise ProductNotFound(item.product_id)

        rate = snapshot.tax_rate_percent
        if rate is None:
            rate = default_tax_rate

        line_total = round(snapshot.unit_price * item.quantity, 2)
        line_tax = round(line_total * rate / 100, 2)

        subtotal += line_total
        taxes += line_tax
        label = tax_slab_label(rate)
        breakdown[label] = breakdown.get(label, 0.0) + line_tax

        result.lines.append(
            PricedLineItem(
                product_id=snapshot.id,
                title=snapshot.title,
                variant=item.variant,
                quantity=item.quantity,
                unit_price=snapshot.unit_price,
                tax_rate_percent=rate,
                line_total=line_total,
                line_tax=line_tax,
                seller_id=snapshot.seller_id,
            )
        )

    result.subtotal = round(subtotal, 2)
    result.taxes = round(taxes, 2)
    result.tax_breakdown = {label: round(amount, 2) for label, amount in breakdown.items()}
    return result


def shipping_fee(subtotal: float, settings: Settings) -> float:
    """Flat fee below the free-shipping threshold, free at or above it"""
    if subtotal <= 0:
        return 0.0
    if subtotal >= settings.free_shipping_threshold:
        return 0.0
    return round(settings.shipping_flat_fee, 2)
