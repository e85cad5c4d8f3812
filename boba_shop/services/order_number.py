from datetime import datetime


def generate_order_number(
    order_id: int | None,
    created_at: datetime,
    prefix: str = "BB",
    width: int = 6,
) -> str:
    """
    Customer-facing order number, e.g. BB-2026-000042.

    Derived from the row's surrogate id, so it can only be produced once the
    header has been flushed. Uniqueness follows from the id.
    """
    if order_id is None:
        raise ValueError("Order number requested before the order row has an id")
    return f"{prefix}-{created_at.year:04d}-{order_id:0{width}d}"
