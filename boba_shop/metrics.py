from prometheus_client import Counter, Histogram

ORDERS_CREATED = Counter(
    "orders_created_total",
    "Orders committed, by fulfillment type",
    ["fulfillment_type"],  # pickup | delivery
)

ORDER_REJECTIONS = Counter(
    "order_rejections_total",
    "Order requests rejected before any write",
    ["reason"],  # INVALID_MENU_ITEM | INVALID_OPTION | TOO_MANY_SELECTIONS | ...
)

ORDER_STORAGE_FAILURES = Counter(
    "order_storage_failures_total",
    "Order transactions rolled back by the storage layer",
)

ORDER_SUBTOTAL = Histogram(
    "order_subtotal",
    "Order subtotal in shop currency",
    buckets=[100, 200, 300, 500, 750, 1000, 1500, 2500, 5000],
)
