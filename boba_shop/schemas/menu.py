from pydantic import BaseModel

from boba_shop.models.catalog import SelectionType
from boba_shop.schemas.order import CAMEL_CONFIG


class MenuOptionResponse(BaseModel):
    id: int
    label: str
    price_delta: str

    model_config = CAMEL_CONFIG


class MenuOptionGroupResponse(BaseModel):
    id: int
    name: str
    selection_type: SelectionType
    is_required: bool
    options: list[MenuOptionResponse]

    model_config = CAMEL_CONFIG


class MenuItemResponse(BaseModel):
    id: int
    name: str
    description: str | None
    base_price: str
    image_url: str | None
    option_groups: list[MenuOptionGroupResponse]

    model_config = CAMEL_CONFIG


class MenuCategoryResponse(BaseModel):
    id: int
    name: str
    sort_order: int
    items: list[MenuItemResponse]

    model_config = CAMEL_CONFIG


class MenuResponse(BaseModel):
    categories: list[MenuCategoryResponse]
