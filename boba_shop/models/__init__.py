# Import all models here so SQLAlchemy registers them with Base.metadata
from boba_shop.models.catalog import (
    Category,
    MenuItem,
    Option,
    OptionGroup,
    SelectionType,
    menu_item_option_groups,
)
from boba_shop.models.order import (
    FulfillmentType,
    Order,
    OrderItem,
    OrderItemOption,
    OrderStatus,
    PaymentMethod,
)

__all__ = [
    "Category",
    "FulfillmentType",
    "MenuItem",
    "Option",
    "OptionGroup",
    "Order",
    "OrderItem",
    "OrderItemOption",
    "OrderStatus",
    "PaymentMethod",
    "SelectionType",
    "menu_item_option_groups",
]
