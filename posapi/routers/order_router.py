from typing import List

from fastapi import APIRouter, Depends, Query, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_order_service, get_session_context
from posapi.schemas.sale import OrderCreate, OrderStatusUpdate, SaleResponse
from posapi.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreate,
    context: SessionContext = Depends(get_session_context),
    order_service: OrderService = Depends(get_order_service),
) -> SaleResponse:
    """Record an online order; the shop chat gets a Telegram message."""
    return await order_service.create_order(request, context)


@router.get("", response_model=List[SaleResponse])
def list_orders(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    order_service: OrderService = Depends(get_order_service),
) -> List[SaleResponse]:
    return order_service.list_orders(limit=limit, offset=offset)


@router.patch("/{sale_id}/status", response_model=SaleResponse)
def update_order_status(
    sale_id: int,
    request: OrderStatusUpdate,
    _: SessionContext = Depends(get_session_context),
    order_service: OrderService = Depends(get_order_service),
) -> SaleResponse:
    return order_service.update_order_status(sale_id, request.payment_status)
