import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from boba_shop.database import get_db
from boba_shop.errors import OrderValidationError, StorageFailure
from boba_shop.schemas.order import OrderCreate, OrderResponse
from boba_shop.services import order_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    body: OrderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    request_id = _request_id(request)
    logger.info(
        "Received place_order request",
        extra={
            "request_id": request_id,
            "fulfillment_type": body.fulfillment_type.value,
            "line_count": len(body.items),
        },
    )
    producer = getattr(request.app.state, "kafka_producer", None)
    try:
        return await order_service.create_order(db, body, request_id, producer)
    except OrderValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_detail())
    except StorageFailure as exc:
        # Rolled back in full, so the client may retry the same request.
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": exc.code, "message": "Order could not be saved, please retry"},
        )


@router.get("/{order_number}", response_model=OrderResponse)
async def get_order(
    order_number: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    logger.info(
        "Received get_order request",
        extra={"request_id": _request_id(request), "order_number": order_number},
    )
    order = await order_service.get_order_by_number(db, order_number.strip())
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order
