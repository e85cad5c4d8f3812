"""
Order price calculation.

All money is decimal.Decimal end to end. Values are never quantized during
the calculation; only format_money rounds, and only for display/wire output.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from boba_shop.errors import AmountTooLarge

if TYPE_CHECKING:
    from boba_shop.services.selection import SelectedOption, ValidatedLine

_CENTS = Decimal("0.01")
ZERO = Decimal("0")

# Money columns are Numeric(10, 2)
MAX_AMOUNT = Decimal("100000000")


def format_money(amount: Decimal) -> str:
    """Render a money amount with exactly two fractional digits."""
    return str(Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    options: tuple["SelectedOption", ...]


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple[PricedLine, ...]
    subtotal: Decimal


def price_line(line: "ValidatedLine") -> PricedLine:
    options_delta = sum((o.price_delta for o in line.options), ZERO)
    unit_price = line.item.base_price + options_delta
    return PricedLine(
        menu_item_id=line.item.id,
        name=line.item.name,
        quantity=line.quantity,
        unit_price=unit_price,
        line_total=unit_price * line.quantity,
        options=line.options,
    )


def price_lines(lines: list["ValidatedLine"]) -> PricedOrder:
    priced = tuple(price_line(line) for line in lines)
    subtotal = sum((p.line_total for p in priced), ZERO)
    return PricedOrder(lines=priced, subtotal=subtotal)


def ensure_storable(priced: PricedOrder) -> None:
    """Reject totals the order tables cannot hold, before anything is written."""
    for line in priced.lines:
        if abs(line.line_total) >= MAX_AMOUNT:
            raise AmountTooLarge(
                f"Line total for menu item {line.menu_item_id} is too large",
                menu_item_id=line.menu_item_id,
            )
    if abs(priced.subtotal) >= MAX_AMOUNT:
        raise AmountTooLarge("Order subtotal is too large")
