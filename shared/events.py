"""
Pydantic event schemas published by the ordering service.
All events extend EventBase which carries correlation/tracing metadata.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class EventBase(BaseModel):
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_version: int = 1
    correlation_id: str  # carries X-Request-ID from the HTTP layer
    occurred_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"extra": "ignore"}


class OrderLineEvent(BaseModel):
    menu_item_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    options: list[str]  # "Group: Label"

    model_config = {"extra": "ignore"}


class OrderPlacedEvent(EventBase):
    order_number: str
    status: str
    customer_name: str
    customer_phone: str
    fulfillment_type: str
    subtotal: Decimal
    payment_method: str | None = None
    notification_text: str
    items: list[OrderLineEvent]
