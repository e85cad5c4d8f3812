import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boba_shop.config import settings
from boba_shop.database import transaction
from boba_shop.errors import OrderValidationError, StorageFailure
from boba_shop.metrics import ORDER_REJECTIONS, ORDER_STORAGE_FAILURES, ORDER_SUBTOTAL, ORDERS_CREATED
from boba_shop.models.order import Order, OrderItem, OrderItemOption, OrderStatus, PaymentMethod
from boba_shop.schemas.order import (
    AdminOrderDetail,
    AdminOrderItem,
    AdminOrderItemOption,
    AdminOrderList,
    AdminOrderListItem,
    OrderCreate,
    OrderItemSummary,
    OrderOptionSummary,
    OrderResponse,
    OrderStatusResponse,
    OrderSummary,
)
from boba_shop.services.catalog import load_catalog_snapshot
from boba_shop.services.notification import build_notification_text, build_whatsapp_deeplink
from boba_shop.services.order_number import generate_order_number
from boba_shop.services.payment import initial_status, validate_payment_claim
from boba_shop.services.pricing import PricedOrder, ensure_storable, format_money, price_lines
from boba_shop.services.selection import validate_selections
from shared.events import OrderLineEvent, OrderPlacedEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComputedOrder:
    """Everything known about an order before it touches the database."""

    order_data: OrderCreate
    payment_method: PaymentMethod | None
    priced: PricedOrder
    notification_text: str
    notification_deeplink: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _summary_from_priced(order_data: OrderCreate, priced: PricedOrder) -> OrderSummary:
    return OrderSummary(
        fulfillment_type=order_data.fulfillment_type,
        delivery_address=order_data.delivery_address,
        items=[
            OrderItemSummary(
                menu_item_id=line.menu_item_id,
                name=line.name,
                quantity=line.quantity,
                unit_price=format_money(line.unit_price),
                options=[
                    OrderOptionSummary(
                        group=o.group_name, label=o.label, price_delta=format_money(o.price_delta)
                    )
                    for o in line.options
                ],
                line_total=format_money(line.line_total),
            )
            for line in priced.lines
        ],
    )


def _summary_from_rows(order: Order) -> OrderSummary:
    return OrderSummary(
        fulfillment_type=order.fulfillment_type,
        delivery_address=order.delivery_address,
        items=[
            OrderItemSummary(
                menu_item_id=item.menu_item_id,
                name=item.item_name_snapshot,
                quantity=item.quantity,
                unit_price=format_money(item.unit_price_snapshot),
                options=[
                    OrderOptionSummary(
                        group=o.option_group_name_snapshot,
                        label=o.option_label_snapshot,
                        price_delta=format_money(o.option_price_delta_snapshot),
                    )
                    for o in item.options
                ],
                line_total=format_money(item.line_total),
            )
            for item in order.items
        ],
    )


def _build_response(order: Order, summary: OrderSummary) -> OrderResponse:
    return OrderResponse(
        order_number=order.order_number,
        status=order.status,
        subtotal=format_money(order.subtotal),
        payment_method=order.payment_method,
        paid_at=order.paid_at,
        transaction_id=order.transaction_id,
        payment_reference=order.payment_reference,
        payment_proof_url=order.payment_proof_url,
        notification_deeplink=order.whatsapp_deeplink,
        summary=summary,
    )


def _build_admin_detail(order: Order) -> AdminOrderDetail:
    return AdminOrderDetail(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        created_at=order.created_at,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        fulfillment_type=order.fulfillment_type,
        delivery_address=order.delivery_address,
        customer_note=order.customer_note,
        subtotal=format_money(order.subtotal),
        whatsapp_message_text=order.whatsapp_message_text,
        payment_method=order.payment_method,
        payment_amount=format_money(order.payment_amount) if order.payment_amount is not None else None,
        paid_at=order.paid_at,
        transaction_id=order.transaction_id,
        payment_reference=order.payment_reference,
        payment_proof_url=order.payment_proof_url,
        items=[
            AdminOrderItem(
                id=item.id,
                menu_item_id=item.menu_item_id,
                item_name_snapshot=item.item_name_snapshot,
                unit_price_snapshot=format_money(item.unit_price_snapshot),
                quantity=item.quantity,
                line_total=format_money(item.line_total),
                options=[
                    AdminOrderItemOption(
                        option_id=o.option_id,
                        option_group_name_snapshot=o.option_group_name_snapshot,
                        option_label_snapshot=o.option_label_snapshot,
                        option_price_delta_snapshot=format_money(o.option_price_delta_snapshot),
                    )
                    for o in item.options
                ],
            )
            for item in order.items
        ],
    )


def _with_lines(stmt):
    return stmt.options(selectinload(Order.items).selectinload(OrderItem.options))


async def _insert_header(db: AsyncSession, computed: ComputedOrder, status: OrderStatus) -> Order:
    data = computed.order_data
    now = datetime.utcnow()
    claimed = computed.payment_method is not None

    order = Order(
        order_number=None,
        status=status,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        fulfillment_type=data.fulfillment_type,
        delivery_address=data.delivery_address,
        customer_note=data.customer_note,
        subtotal=computed.priced.subtotal,
        payment_method=computed.payment_method,
        payment_amount=computed.priced.subtotal if claimed else None,
        paid_at=now if claimed else None,
        transaction_id=data.transaction_id,
        payment_reference=data.payment_reference,
        payment_proof_url=data.payment_proof_url,
        whatsapp_message_text=computed.notification_text,
        whatsapp_deeplink=computed.notification_deeplink,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    await db.flush()  # obtain order.id before deriving the order number

    order.order_number = generate_order_number(
        order.id,
        order.created_at,
        prefix=settings.order_number_prefix,
        width=settings.order_number_width,
    )
    await db.flush()
    return order


async def _insert_lines(db: AsyncSession, order: Order, priced: PricedOrder) -> None:
    for line in priced.lines:
        db.add(
            OrderItem(
                order_id=order.id,
                menu_item_id=line.menu_item_id,
                item_name_snapshot=line.name,
                unit_price_snapshot=line.unit_price,
                quantity=line.quantity,
                line_total=line.line_total,
                options=[
                    OrderItemOption(
                        option_id=o.option_id,
                        option_group_name_snapshot=o.group_name,
                        option_label_snapshot=o.label,
                        option_price_delta_snapshot=o.price_delta,
                    )
                    for o in line.options
                ],
            )
        )
    await db.flush()


async def _publish_order_placed(
    producer: AIOKafkaProducer, order: Order, computed: ComputedOrder, request_id: str
) -> None:
    event = OrderPlacedEvent(
        correlation_id=request_id,
        order_number=order.order_number,
        status=order.status.value,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        fulfillment_type=order.fulfillment_type.value,
        subtotal=order.subtotal,
        payment_method=order.payment_method.value if order.payment_method else None,
        notification_text=order.whatsapp_message_text,
        items=[
            OrderLineEvent(
                menu_item_id=line.menu_item_id,
                name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
                options=[f"{o.group_name}: {o.label}" for o in line.options],
            )
            for line in computed.priced.lines
        ],
    )
    # The order is already committed; a lost notification must not fail the checkout.
    try:
        await producer.send_and_wait(
            settings.kafka_order_topic,
            key=order.order_number.encode(),
            value=event.model_dump_json().encode(),
        )
    except KafkaError as exc:
        logger.warning(
            "Failed to publish order.placed event",
            extra={"order_number": order.order_number, "request_id": request_id, "error": str(exc)},
        )
        return

    logger.info(
        "Published order.placed event",
        extra={"order_number": order.order_number, "request_id": request_id},
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def compute_order(db: AsyncSession, order_data: OrderCreate) -> ComputedOrder:
    """
    Validate the selections against the live catalog and price the order.

    Read-only: raises an OrderValidationError subclass on the first problem
    found, before anything is written.
    """
    payment_method = validate_payment_claim(order_data, settings.require_payment_claim)

    snapshot = await load_catalog_snapshot(db, (line.menu_item_id for line in order_data.items))
    validated = validate_selections(snapshot, order_data.items)
    priced = price_lines(validated)
    ensure_storable(priced)

    text = build_notification_text(
        customer_name=order_data.customer_name,
        customer_phone=order_data.customer_phone,
        fulfillment_type=order_data.fulfillment_type,
        delivery_address=order_data.delivery_address,
        customer_note=order_data.customer_note,
        priced=priced,
    )
    deeplink = build_whatsapp_deeplink(text, settings.whatsapp_phone or order_data.customer_phone)

    return ComputedOrder(
        order_data=order_data,
        payment_method=payment_method,
        priced=priced,
        notification_text=text,
        notification_deeplink=deeplink,
    )


async def persist_order(db: AsyncSession, computed: ComputedOrder, status: OrderStatus) -> Order:
    """
    Write header, order number, line items and option rows as one unit.
    Any failure rolls the whole graph back.
    """
    async with transaction(db):
        order = await _insert_header(db, computed, status)
        await _insert_lines(db, order, computed.priced)
    return order


async def create_order(
    db: AsyncSession,
    order_data: OrderCreate,
    request_id: str,
    producer: AIOKafkaProducer | None = None,
) -> OrderResponse:
    # 1. Validate + price against the catalog (no writes)
    try:
        computed = await compute_order(db, order_data)
    except OrderValidationError as exc:
        ORDER_REJECTIONS.labels(exc.code).inc()
        logger.info(
            "Order rejected",
            extra={"request_id": request_id, "reason": exc.code, "error": str(exc)},
        )
        raise

    # 2. Persist atomically
    try:
        order = await persist_order(db, computed, initial_status(settings.require_payment_claim))
    except StorageFailure as exc:
        ORDER_STORAGE_FAILURES.inc()
        logger.error(
            "Order transaction rolled back",
            extra={"request_id": request_id, "error": str(exc)},
        )
        raise

    ORDERS_CREATED.labels(order.fulfillment_type.value).inc()
    ORDER_SUBTOTAL.observe(float(order.subtotal))
    logger.info(
        "Order persisted",
        extra={
            "order_number": order.order_number,
            "request_id": request_id,
            "status": order.status.value,
            "subtotal": format_money(order.subtotal),
            "item_count": len(computed.priced.lines),
        },
    )

    # 3. Hand off to downstream notifiers
    if producer is not None:
        await _publish_order_placed(producer, order, computed, request_id)

    return _build_response(order, _summary_from_priced(order_data, computed.priced))


async def get_order_by_number(db: AsyncSession, order_number: str) -> OrderResponse | None:
    result = await db.execute(_with_lines(select(Order).where(Order.order_number == order_number)))
    order = result.scalars().first()
    if order is None:
        return None
    return _build_response(order, _summary_from_rows(order))


async def list_orders(
    db: AsyncSession,
    status: OrderStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    limit: int = 20,
) -> AdminOrderList:
    filters = [Order.order_number.is_not(None)]
    if status is not None:
        filters.append(Order.status == status)
    if date_from is not None:
        filters.append(Order.created_at >= datetime.combine(date_from, time.min))
    if date_to is not None:
        filters.append(Order.created_at <= datetime.combine(date_to, time.max))

    total = await db.scalar(select(func.count()).select_from(Order).where(*filters))
    result = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return AdminOrderList(
        page=page,
        limit=limit,
        total=total or 0,
        orders=[
            AdminOrderListItem(
                id=o.id,
                order_number=o.order_number,
                created_at=o.created_at,
                customer_name=o.customer_name,
                customer_phone=o.customer_phone,
                fulfillment_type=o.fulfillment_type,
                status=o.status,
                subtotal=format_money(o.subtotal),
                payment_method=o.payment_method,
                paid_at=o.paid_at,
                payment_reference=o.payment_reference,
                transaction_id=o.transaction_id,
            )
            for o in result.scalars().all()
        ],
    )


async def get_order_detail(db: AsyncSession, order_id: int) -> AdminOrderDetail | None:
    result = await db.execute(_with_lines(select(Order).where(Order.id == order_id)))
    order = result.scalars().first()
    if order is None:
        return None
    return _build_admin_detail(order)


async def update_order_status(
    db: AsyncSession, order_id: int, status: OrderStatus
) -> OrderStatusResponse | None:
    order = await db.get(Order, order_id)
    if order is None:
        return None

    previous = order.status
    async with transaction(db):
        order.status = status
        order.updated_at = datetime.utcnow()

    logger.info(
        "Order status updated",
        extra={"order_number": order.order_number, "from": previous.value, "to": status.value},
    )
    return OrderStatusResponse(id=order.id, status=order.status)
