from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boba_shop.database import get_db
from boba_shop.schemas.menu import MenuResponse
from boba_shop.services import catalog

router = APIRouter()


@router.get("", response_model=MenuResponse)
async def get_menu(db: AsyncSession = Depends(get_db)) -> MenuResponse:
    """Active categories, items, option groups and options."""
    return await catalog.get_menu(db)
