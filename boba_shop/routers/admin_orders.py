import logging
import secrets
from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from boba_shop.config import settings
from boba_shop.database import get_db
from boba_shop.errors import StorageFailure
from boba_shop.models.order import OrderStatus
from boba_shop.schemas.order import (
    AdminOrderDetail,
    AdminOrderList,
    OrderStatusResponse,
    OrderStatusUpdate,
)
from boba_shop.services import order_service

logger = logging.getLogger(__name__)


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid admin token"
        )


router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=AdminOrderList)
async def list_orders(
    order_status: OrderStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> AdminOrderList:
    return await order_service.list_orders(db, order_status, date_from, date_to, page, limit)


@router.get("/{order_id}", response_model=AdminOrderDetail)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)) -> AdminOrderDetail:
    order = await order_service.get_order_detail(db, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.patch("/{order_id}/status", response_model=OrderStatusResponse)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> OrderStatusResponse:
    try:
        updated = await order_service.update_order_status(db, order_id, body.status)
    except StorageFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": exc.code, "message": "Status could not be saved, please retry"},
        )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return updated
