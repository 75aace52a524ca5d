"""Server-side order pricing: subtotal, offer discount, delivery fee and tax."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.api.middleware.error_handler import ValidationError
from src.core.config import Settings

CENT = Decimal("0.01")


def _money(value: Any) -> Decimal:
    """Convert a stored or requested amount to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    """A requested line with its unit price looked up from the menu."""

    food_item_id: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return _money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderPricing:
    """Breakdown of an order total computed from menu prices."""

    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal


def _offer_discount(lines: list[PricedLine], subtotal: Decimal, offer: dict[str, Any]) -> Decimal:
    offer_type = offer.get("type")
    if offer_type == "percentage":
        return _money(subtotal * Decimal(str(offer.get("value", 0))) / 100)
    if offer_type == "bogo":
        # one free unit for every pair of the same item
        return _money(sum((line.unit_price * (line.quantity // 2) for line in lines), Decimal("0")))
    return Decimal("0.00")


def compute_order_pricing(
    lines: list[PricedLine],
    settings: Settings,
    offer: dict[str, Any] | None = None,
) -> OrderPricing:
    """Compute the amount a customer owes for an order.

    Args:
        lines: Line items with unit prices taken from the food item store.
        settings: Settings carrying the fee schedule.
        offer: Optional offer row already validated for this order.

    Returns:
        OrderPricing: Amounts rounded half-up to two decimal places.
    """
    subtotal = _money(sum((line.line_total for line in lines), Decimal("0")))

    discount = Decimal("0.00")
    if offer:
        discount = min(_offer_discount(lines, subtotal, offer), subtotal)

    taxable = subtotal - discount
    delivery_fee = _money(taxable * settings.delivery_fee_rate)
    if offer and offer.get("type") == "freeDelivery":
        delivery_fee = Decimal("0.00")
    tax = _money(taxable * settings.tax_rate)

    return OrderPricing(
        subtotal=subtotal,
        discount=discount,
        delivery_fee=delivery_fee,
        tax=tax,
        total=_money(taxable + delivery_fee + tax),
    )


def ensure_total_matches(client_total: Decimal, pricing: OrderPricing, tolerance: Decimal) -> None:
    """Reject an order whose client-side total diverges from the computed one.

    Raises:
        ValidationError: If the difference exceeds ``tolerance``.
    """
    submitted = _money(client_total)
    if abs(submitted - pricing.total) > tolerance:
        raise ValidationError(
            f"Order total {submitted} does not match computed total {pricing.total}",
            details=[
                {"loc": ["total_amount"], "msg": f"subtotal={pricing.subtotal}", "type": "pricing"},
                {"loc": ["total_amount"], "msg": f"discount={pricing.discount}", "type": "pricing"},
                {"loc": ["total_amount"], "msg": f"delivery_fee={pricing.delivery_fee}", "type": "pricing"},
                {"loc": ["total_amount"], "msg": f"tax={pricing.tax}", "type": "pricing"},
            ],
        )


def to_minor_units(amount: Any) -> int:
    """Convert a currency amount to the integer smallest unit (paise, cents)."""
    return int((_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
