from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from boba_shop.models.order import FulfillmentType, OrderStatus, PaymentMethod

# Wire format is camelCase; Python attributes stay snake_case.
CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PhoneStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=6, max_length=40)]

MAX_QUANTITY = 1000


class OrderItemCreate(BaseModel):
    menu_item_id: int = Field(gt=0)
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
    selected_option_ids: list[Annotated[int, Field(gt=0)]] = Field(default_factory=list)

    model_config = CAMEL_CONFIG


class OrderCreate(BaseModel):
    customer_name: NonEmptyStr
    customer_phone: PhoneStr
    fulfillment_type: FulfillmentType
    delivery_address: TrimmedStr | None = None
    customer_note: TrimmedStr | None = None
    items: list[OrderItemCreate] = Field(min_length=1)

    # Parsed by the payment claim check so unknown methods get a domain error
    payment_method: TrimmedStr | None = None
    transaction_id: TrimmedStr | None = None
    payment_reference: TrimmedStr | None = None
    payment_proof_url: TrimmedStr | None = None

    model_config = CAMEL_CONFIG

    @model_validator(mode="after")
    def check_delivery_address(self) -> "OrderCreate":
        if self.fulfillment_type == FulfillmentType.DELIVERY:
            if not self.delivery_address:
                raise ValueError("deliveryAddress is required for delivery orders")
        else:
            self.delivery_address = None

        # Blank optional strings mean "not provided"
        for field in (
            "customer_note",
            "payment_method",
            "transaction_id",
            "payment_reference",
            "payment_proof_url",
        ):
            if getattr(self, field) == "":
                setattr(self, field, None)
        return self


class OrderOptionSummary(BaseModel):
    group: str
    label: str
    price_delta: str

    model_config = CAMEL_CONFIG


class OrderItemSummary(BaseModel):
    menu_item_id: int
    name: str
    quantity: int
    unit_price: str
    options: list[OrderOptionSummary]
    line_total: str

    model_config = CAMEL_CONFIG


class OrderSummary(BaseModel):
    fulfillment_type: FulfillmentType
    delivery_address: str | None
    items: list[OrderItemSummary]

    model_config = CAMEL_CONFIG


class OrderResponse(BaseModel):
    order_number: str
    status: OrderStatus
    subtotal: str
    payment_method: PaymentMethod | None
    paid_at: datetime | None
    transaction_id: str | None
    payment_reference: str | None
    payment_proof_url: str | None
    notification_deeplink: str
    summary: OrderSummary

    model_config = CAMEL_CONFIG


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminOrderListItem(BaseModel):
    id: int
    order_number: str
    created_at: datetime
    customer_name: str
    customer_phone: str
    fulfillment_type: FulfillmentType
    status: OrderStatus
    subtotal: str
    payment_method: PaymentMethod | None
    paid_at: datetime | None
    payment_reference: str | None
    transaction_id: str | None

    model_config = CAMEL_CONFIG


class AdminOrderList(BaseModel):
    page: int
    limit: int
    total: int
    orders: list[AdminOrderListItem]

    model_config = CAMEL_CONFIG


class AdminOrderItemOption(BaseModel):
    option_id: int
    option_group_name_snapshot: str
    option_label_snapshot: str
    option_price_delta_snapshot: str

    model_config = CAMEL_CONFIG


class AdminOrderItem(BaseModel):
    id: int
    menu_item_id: int
    item_name_snapshot: str
    unit_price_snapshot: str
    quantity: int
    line_total: str
    options: list[AdminOrderItemOption]

    model_config = CAMEL_CONFIG


class AdminOrderDetail(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    created_at: datetime
    customer_name: str
    customer_phone: str
    fulfillment_type: FulfillmentType
    delivery_address: str | None
    customer_note: str | None
    subtotal: str
    whatsapp_message_text: str
    payment_method: PaymentMethod | None
    payment_amount: str | None
    paid_at: datetime | None
    transaction_id: str | None
    payment_reference: str | None
    payment_proof_url: str | None
    items: list[AdminOrderItem]

    model_config = CAMEL_CONFIG


class OrderStatusUpdate(BaseModel):
    status: OrderStatus

    model_config = CAMEL_CONFIG


class OrderStatusResponse(BaseModel):
    id: int
    status: OrderStatus

    model_config = CAMEL_CONFIG
