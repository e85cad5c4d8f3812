import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from boba_shop.database import AsyncSessionLocal
from boba_shop.models.catalog import Category, MenuItem, Option, OptionGroup, SelectionType
from boba_shop.schemas.menu import (
    MenuCategoryResponse,
    MenuItemResponse,
    MenuOptionGroupResponse,
    MenuOptionResponse,
    MenuResponse,
)
from boba_shop.services.pricing import format_money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Snapshot types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogOption:
    id: int
    label: str
    price_delta: Decimal


@dataclass(frozen=True)
class CatalogGroup:
    id: int
    name: str
    selection_type: SelectionType
    is_required: bool
    options: tuple[CatalogOption, ...] = ()


@dataclass(frozen=True)
class CatalogItem:
    id: int
    name: str
    base_price: Decimal
    groups: tuple[CatalogGroup, ...] = field(default_factory=tuple)


def _active_groups(item: MenuItem) -> list[OptionGroup]:
    groups = [g for g in item.option_groups if g.is_active]
    return sorted(groups, key=lambda g: (g.sort_order, g.id))


def _active_options(group: OptionGroup) -> list[Option]:
    options = [o for o in group.options if o.is_active]
    return sorted(options, key=lambda o: (o.sort_order, o.id))


def _to_snapshot(item: MenuItem) -> CatalogItem:
    return CatalogItem(
        id=item.id,
        name=item.name,
        base_price=item.base_price,
        groups=tuple(
            CatalogGroup(
                id=g.id,
                name=g.name,
                selection_type=g.selection_type,
                is_required=g.is_required,
                options=tuple(
                    CatalogOption(id=o.id, label=o.label, price_delta=o.price_delta)
                    for o in _active_options(g)
                ),
            )
            for g in _active_groups(item)
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def load_catalog_snapshot(
    db: AsyncSession, menu_item_ids: Iterable[int]
) -> dict[int, CatalogItem]:
    """
    Load the orderable view of the requested menu items.

    Only active items are returned, each with its active mapped option groups
    and their active options. Unknown or inactive ids are simply missing from
    the result; the selection validator turns that into an error.
    """
    ids = set(menu_item_ids)
    if not ids:
        return {}

    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.id.in_(ids), MenuItem.is_active.is_(True))
        .options(selectinload(MenuItem.option_groups).selectinload(OptionGroup.options))
    )
    return {item.id: _to_snapshot(item) for item in result.scalars().all()}


async def get_menu(db: AsyncSession) -> MenuResponse:
    result = await db.execute(
        select(Category)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.id)
        .options(
            selectinload(Category.items)
            .selectinload(MenuItem.option_groups)
            .selectinload(OptionGroup.options)
        )
    )

    categories = []
    for category in result.scalars().all():
        items = []
        for item in category.items:
            if not item.is_active:
                continue
            snapshot = _to_snapshot(item)
            items.append(
                MenuItemResponse(
                    id=item.id,
                    name=item.name,
                    description=item.description,
                    base_price=format_money(item.base_price),
                    image_url=item.image_url,
                    option_groups=[
                        MenuOptionGroupResponse(
                            id=g.id,
                            name=g.name,
                            selection_type=g.selection_type,
                            is_required=g.is_required,
                            options=[
                                MenuOptionResponse(
                                    id=o.id, label=o.label, price_delta=format_money(o.price_delta)
                                )
                                for o in g.options
                            ],
                        )
                        for g in snapshot.groups
                    ],
                )
            )
        categories.append(
            MenuCategoryResponse(
                id=category.id, name=category.name, sort_order=category.sort_order, items=items
            )
        )
    return MenuResponse(categories=categories)


_MENU_SEED = [
    {
        "name": "Milk Tea",
        "items": [
            {"name": "Classic Milk Tea", "description": "Black tea, milk, tapioca pearls", "base_price": Decimal("150.00")},
            {"name": "Taro Milk Tea", "description": "Creamy taro with pearls", "base_price": Decimal("170.00")},
            {"name": "Brown Sugar Boba", "description": "Fresh milk with brown sugar syrup", "base_price": Decimal("185.00")},
        ],
    },
    {
        "name": "Fruit Tea",
        "items": [
            {"name": "Mango Green Tea", "description": "Jasmine green tea with mango", "base_price": Decimal("160.00")},
            {"name": "Passion Fruit Tea", "description": "Passion fruit with popping boba", "base_price": Decimal("165.00")},
        ],
    },
]

_OPTION_SEED = [
    {
        "name": "Size",
        "selection_type": SelectionType.SINGLE,
        "is_required": True,
        "options": [("Regular", Decimal("0.00")), ("Large", Decimal("30.00"))],
    },
    {
        "name": "Sugar Level",
        "selection_type": SelectionType.SINGLE,
        "is_required": True,
        "options": [("0%", Decimal("0.00")), ("50%", Decimal("0.00")), ("100%", Decimal("0.00"))],
    },
    {
        "name": "Toppings",
        "selection_type": SelectionType.MULTI,
        "is_required": False,
        "options": [
            ("Extra Pearls", Decimal("20.00")),
            ("Grass Jelly", Decimal("25.00")),
            ("Cheese Foam", Decimal("35.00")),
        ],
    },
]


async def seed_menu() -> None:
    """Populate a demo catalog if there is none. Called once on startup."""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(MenuItem).limit(1))
        if result.scalars().first() is not None:
            return

        groups = []
        for sort_order, group_data in enumerate(_OPTION_SEED):
            group = OptionGroup(
                name=group_data["name"],
                selection_type=group_data["selection_type"],
                is_required=group_data["is_required"],
                sort_order=sort_order,
                options=[
                    Option(label=label, price_delta=delta, sort_order=i)
                    for i, (label, delta) in enumerate(group_data["options"])
                ],
            )
            groups.append(group)

        item_count = 0
        for sort_order, category_data in enumerate(_MENU_SEED):
            category = Category(name=category_data["name"], sort_order=sort_order)
            db.add(category)
            for item_data in category_data["items"]:
                db.add(MenuItem(category=category, option_groups=list(groups), **item_data))
                item_count += 1

        await db.commit()
        logger.info("Seeded demo menu", extra={"categories": len(_MENU_SEED), "items": item_count})
