# storefront/domain/pricing.py
"""
Pricing calculator.

Pure functions, no database access. Cart views feed it live product prices,
orders feed it the unit prices frozen on their OrderItems, so a later price
change never reaches an existing order.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class PricedLine(NamedTuple):
    unit_price: Decimal
    quantity: int


class PriceBreakdown(NamedTuple):
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal


def money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price, quantity: int) -> Decimal:
    return money(money(unit_price) * quantity)


def price(lines: Iterable[PricedLine], shipping_cost, tax_rate) -> PriceBreakdown:
    subtotal = sum((line_total(line.unit_price, line.quantity) for line in lines), ZERO)
    shipping = money(shipping_cost)
    # tax only on goods, shipping is not taxed
    tax = money(subtotal * Decimal(str(tax_rate)))
    return PriceBreakdown(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax=tax,
        total=money(subtotal + shipping + tax),
    )


def recompute_total(order, tax_rate) -> PriceBreakdown:
    """
    Single place where an order's money fields are derived.

    Called on creation and on every shipping cost change. Reads the frozen
    OrderItem prices, never the catalog.
    """
    breakdown = price(
        (PricedLine(i.unit_price, i.quantity) for i in order.items),
        order.shipping_cost,
        tax_rate,
    )
    order.subtotal = breakdown.subtotal
    order.shipping_cost = breakdown.shipping_cost
    order.tax = breakdown.tax
    order.total = breakdown.total
    return breakdown
