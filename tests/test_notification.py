from datetime import datetime
from decimal import Decimal

import pytest

from boba_shop.models.catalog import SelectionType
from boba_shop.models.order import FulfillmentType
from boba_shop.services.catalog import CatalogGroup, CatalogItem
from boba_shop.services.notification import build_notification_text, build_whatsapp_deeplink
from boba_shop.services.order_number import generate_order_number
from boba_shop.services.pricing import price_lines
from boba_shop.services.selection import SelectedOption, ValidatedLine


def _priced():
    size = SelectedOption(option_id=2, group_id=1, group_name="Size", label="Large", price_delta=Decimal("30.00"))
    pearls = SelectedOption(option_id=5, group_id=2, group_name="Toppings", label="Pearls", price_delta=Decimal("10.50"))
    group = CatalogGroup(id=1, name="Size", selection_type=SelectionType.SINGLE, is_required=True)
    milk_tea = CatalogItem(id=1, name="Milk Tea", base_price=Decimal("100.00"), groups=(group,))
    lemonade = CatalogItem(id=2, name="Lemonade", base_price=Decimal("80.00"))
    return price_lines(
        [
            ValidatedLine(item=milk_tea, quantity=2, options=(size, pearls)),
            ValidatedLine(item=lemonade, quantity=1, options=()),
        ]
    )


def test_pickup_text():
    text = build_notification_text(
        customer_name="Abebe",
        customer_phone="0911234567",
        fulfillment_type=FulfillmentType.PICKUP,
        delivery_address=None,
        customer_note=None,
        priced=_priced(),
    )

    assert text == "\n".join(
        [
            "New Order",
            "Name: Abebe",
            "Phone: 0911234567",
            "Type: pickup",
            "",
            "Items:",
            "- 2 x Milk Tea @ 140.50 = 281.00",
            "  • Size: Large (+30.00)",
            "  • Toppings: Pearls (+10.50)",
            "- 1 x Lemonade @ 80.00 = 80.00",
            "",
            "Subtotal: 361.00",
        ]
    )


def test_delivery_text_includes_address_and_note():
    text = build_notification_text(
        customer_name="Sara",
        customer_phone="0911000000",
        fulfillment_type=FulfillmentType.DELIVERY,
        delivery_address="Bole, near Edna Mall",
        customer_note="Ring twice",
        priced=_priced(),
    )
    lines = text.split("\n")
    assert lines[3:6] == ["Type: delivery", "Address: Bole, near Edna Mall", "Note: Ring twice"]


def test_text_is_deterministic():
    kwargs = dict(
        customer_name="Sara",
        customer_phone="0911000000",
        fulfillment_type=FulfillmentType.PICKUP,
        delivery_address=None,
        customer_note="less ice",
        priced=_priced(),
    )
    assert build_notification_text(**kwargs) == build_notification_text(**kwargs)


def test_deeplink_keeps_phone_digits_and_encodes_like_uri_component():
    link = build_whatsapp_deeplink("New Order\nA+B (x) = 1.00 @ •", "+251 91-123 4567")

    assert link == (
        "https://wa.me/251911234567?text="
        "New%20Order%0AA%2BB%20(x)%20%3D%201.00%20%40%20%E2%80%A2"
    )


@pytest.mark.parametrize(
    "order_id, year, prefix, width, expected",
    [
        (1, 2026, "BB", 6, "BB-2026-000001"),
        (123, 2025, "BB", 6, "BB-2025-000123"),
        (1234567, 2026, "BB", 6, "BB-2026-1234567"),
        (42, 2026, "TEA", 4, "TEA-2026-0042"),
    ],
)
def test_order_number_format(order_id, year, prefix, width, expected):
    assert generate_order_number(order_id, datetime(year, 3, 1), prefix=prefix, width=width) == expected


def test_order_number_requires_an_id():
    with pytest.raises(ValueError):
        generate_order_number(None, datetime(2026, 1, 1))
