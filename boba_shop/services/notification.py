import re
from urllib.parse import quote

from boba_shop.models.order import FulfillmentType
from boba_shop.services.pricing import PricedOrder, format_money

WHATSAPP_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves alone; WhatsApp clients expect that encoding.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_notification_text(
    *,
    customer_name: str,
    customer_phone: str,
    fulfillment_type: FulfillmentType,
    delivery_address: str | None,
    customer_note: str | None,
    priced: PricedOrder,
) -> str:
    lines = [
        "New Order",
        f"Name: {customer_name}",
        f"Phone: {customer_phone}",
        f"Type: {fulfillment_type.value}",
    ]
    if fulfillment_type == FulfillmentType.DELIVERY:
        lines.append(f"Address: {delivery_address}")
    if customer_note:
        lines.append(f"Note: {customer_note}")

    lines.append("")
    lines.append("Items:")
    for line in priced.lines:
        lines.append(
            f"- {line.quantity} x {line.name} @ {format_money(line.unit_price)}"
            f" = {format_money(line.line_total)}"
        )
        for option in line.options:
            lines.append(f"  • {option.group_name}: {option.label} (+{format_money(option.price_delta)})")

    lines.append("")
    lines.append(f"Subtotal: {format_money(priced.subtotal)}")
    return "\n".join(lines)


def build_whatsapp_deeplink(text: str, phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    return f"{WHATSAPP_BASE_URL}/{digits}?text={quote(text, safe=_URI_COMPONENT_SAFE)}"
