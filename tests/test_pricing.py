from decimal import Decimal

import pytest

from boba_shop.errors import AmountTooLarge
from boba_shop.models.catalog import SelectionType
from boba_shop.services.catalog import CatalogGroup, CatalogItem, CatalogOption
from boba_shop.services.pricing import ensure_storable, format_money, price_lines
from boba_shop.services.selection import SelectedOption, ValidatedLine


def _line(base: str, deltas: list[str], quantity: int, name: str = "Tea") -> ValidatedLine:
    options = tuple(
        SelectedOption(option_id=i, group_id=1, group_name="Extras", label=f"opt{i}", price_delta=Decimal(d))
        for i, d in enumerate(deltas, start=1)
    )
    group = CatalogGroup(
        id=1,
        name="Extras",
        selection_type=SelectionType.MULTI,
        is_required=False,
        options=tuple(CatalogOption(id=o.option_id, label=o.label, price_delta=o.price_delta) for o in options),
    )
    item = CatalogItem(id=1, name=name, base_price=Decimal(base), groups=(group,))
    return ValidatedLine(item=item, quantity=quantity, options=options)


def test_large_milk_tea_times_two():
    priced = price_lines([_line("100.00", ["30.00"], 2)])

    line = priced.lines[0]
    assert line.unit_price == Decimal("130.00")
    assert line.line_total == Decimal("260.00")
    assert priced.subtotal == Decimal("260.00")
    assert format_money(priced.subtotal) == "260.00"


def test_no_binary_float_drift():
    # 0.1 + 0.2 style inputs that drift with floats
    priced = price_lines([_line("0.10", ["0.20", "0.01"], 3), _line("19.99", ["0.01"] * 7, 11)])

    assert priced.lines[0].unit_price == Decimal("0.31")
    assert priced.lines[0].line_total == Decimal("0.93")
    assert priced.lines[1].unit_price == Decimal("20.06")
    assert priced.lines[1].line_total == Decimal("220.66")
    assert priced.subtotal == Decimal("221.59")


def test_invariants_hold_across_many_lines():
    lines = [
        _line(f"{base}.{cents:02d}", [f"0.{d:02d}" for d in range(cents % 5)], qty)
        for base, cents, qty in [(12, 99, 1), (7, 5, 13), (150, 0, 2), (3, 33, 9), (45, 45, 4)]
    ]
    priced = price_lines(lines)

    for validated, line in zip(lines, priced.lines):
        expected_unit = validated.item.base_price + sum((o.price_delta for o in validated.options), Decimal(0))
        assert line.unit_price == expected_unit
        assert line.line_total == line.unit_price * line.quantity
    assert priced.subtotal == sum((line.line_total for line in priced.lines), Decimal(0))


def test_line_without_options_uses_base_price():
    priced = price_lines([_line("85.50", [], 1)])
    assert priced.lines[0].unit_price == Decimal("85.50")
    assert priced.lines[0].options == ()


def test_empty_order_has_zero_subtotal():
    assert format_money(price_lines([]).subtotal) == "0.00"


def test_format_money_always_two_digits():
    assert format_money(Decimal("5")) == "5.00"
    assert format_money(Decimal("5.5")) == "5.50"
    assert format_money(Decimal("0.005")) == "0.01"
    assert format_money(Decimal("1234.5678")) == "1234.57"


def test_storable_upper_bound():
    ensure_storable(price_lines([_line("99999.99", [], 1000)]))

    with pytest.raises(AmountTooLarge) as excinfo:
        ensure_storable(price_lines([_line("100000.00", [], 1000)]))
    assert excinfo.value.menu_item_id == 1
