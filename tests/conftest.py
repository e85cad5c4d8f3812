"""
Shared fixtures: an on-disk SQLite database per test, a small seeded catalog,
and an HTTP client bound to the app with get_db pointed at that database.
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from boba_shop.config import settings
from boba_shop.database import Base, get_db
from boba_shop.main import app
from boba_shop.models import (
    Category,
    MenuItem,
    Option,
    OptionGroup,
    Order,
    OrderItem,
    OrderItemOption,
    SelectionType,
)

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(settings, "require_payment_claim", False)
    monkeypatch.setattr(settings, "whatsapp_phone", "")
    monkeypatch.setattr(settings, "order_number_prefix", "BB")
    monkeypatch.setattr(settings, "order_number_width", 6)
    monkeypatch.setattr(settings, "admin_token", ADMIN_TOKEN)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(session_factory) -> dict[str, int]:
    """
    Milk Tea (100.00): Size [single, required] Small +0.00 / Large +30.00,
                       Toppings [multi] Pearls +10.50 / Jelly +12.25 / Pudding (inactive),
                       Ice [single, inactive group] Less Ice
    Lemonade (80.00):  Sweetness [single] Half / Full
    Old Tea (90.00):   inactive item
    """
    async with session_factory() as s:
        category = Category(name="Drinks", sort_order=0)

        size = OptionGroup(
            name="Size",
            selection_type=SelectionType.SINGLE,
            is_required=True,
            sort_order=0,
            options=[
                Option(label="Small", price_delta=Decimal("0.00"), sort_order=0),
                Option(label="Large", price_delta=Decimal("30.00"), sort_order=1),
            ],
        )
        toppings = OptionGroup(
            name="Toppings",
            selection_type=SelectionType.MULTI,
            is_required=False,
            sort_order=1,
            options=[
                Option(label="Pearls", price_delta=Decimal("10.50"), sort_order=0),
                Option(label="Jelly", price_delta=Decimal("12.25"), sort_order=1),
                Option(label="Pudding", price_delta=Decimal("15.00"), sort_order=2, is_active=False),
            ],
        )
        ice = OptionGroup(
            name="Ice",
            selection_type=SelectionType.SINGLE,
            is_required=True,
            is_active=False,
            sort_order=2,
            options=[Option(label="Less Ice", price_delta=Decimal("0.00"))],
        )
        sweetness = OptionGroup(
            name="Sweetness",
            selection_type=SelectionType.SINGLE,
            is_required=False,
            options=[
                Option(label="Half", price_delta=Decimal("0.00"), sort_order=0),
                Option(label="Full", price_delta=Decimal("0.00"), sort_order=1),
            ],
        )

        milk_tea = MenuItem(
            name="Milk Tea",
            base_price=Decimal("100.00"),
            category=category,
            option_groups=[size, toppings, ice],
        )
        lemonade = MenuItem(
            name="Lemonade",
            base_price=Decimal("80.00"),
            category=category,
            option_groups=[sweetness],
        )
        old_tea = MenuItem(
            name="Old Tea", base_price=Decimal("90.00"), category=category, is_active=False
        )
        s.add_all([category, milk_tea, lemonade, old_tea])
        await s.commit()

        def opt(group: OptionGroup, label: str) -> int:
            return next(o.id for o in group.options if o.label == label)

        return {
            "milk_tea": milk_tea.id,
            "lemonade": lemonade.id,
            "old_tea": old_tea.id,
            "small": opt(size, "Small"),
            "large": opt(size, "Large"),
            "pearls": opt(toppings, "Pearls"),
            "jelly": opt(toppings, "Jelly"),
            "pudding": opt(toppings, "Pudding"),
            "less_ice": opt(ice, "Less Ice"),
            "half": opt(sweetness, "Half"),
            "full": opt(sweetness, "Full"),
        }


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}


async def count_order_rows(session_factory) -> tuple[int, int, int]:
    """(orders, order_items, order_item_options) as seen by a fresh session."""
    async with session_factory() as s:
        orders = await s.scalar(select(func.count()).select_from(Order))
        items = await s.scalar(select(func.count()).select_from(OrderItem))
        options = await s.scalar(select(func.count()).select_from(OrderItemOption))
    return orders, items, options


def order_payload(*items: dict, **overrides) -> dict:
    payload = {
        "customerName": "Abebe",
        "customerPhone": "+251 911 234 567",
        "fulfillmentType": "pickup",
        "deliveryAddress": None,
        "customerNote": None,
        "items": list(items),
    }
    payload.update(overrides)
    return payload
