from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_inventory_service, get_session_context
from posapi.schemas.inventory import (
    InventoryLogEntry,
    PurchaseRequest,
    PurchaseResponse,
    StockAdjustmentRequest,
    StockAdjustmentResponse,
)
from posapi.schemas.pagination import PaginationLimits
from posapi.services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post("/adjustments", response_model=StockAdjustmentResponse)
def add_stock_adjustment(
    request: StockAdjustmentRequest,
    context: SessionContext = Depends(get_session_context),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> StockAdjustmentResponse:
    return inventory_service.add_stock_adjustment(request, context)


@router.get("/logs", response_model=List[InventoryLogEntry])
def get_inventory_logs(
    product_id: Optional[int] = Query(None),
    limit: int = Query(
        PaginationLimits.INVENTORY_LOGS["default"],
        ge=PaginationLimits.INVENTORY_LOGS["min"],
        le=PaginationLimits.INVENTORY_LOGS["max"],
    ),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> List[InventoryLogEntry]:
    return inventory_service.get_inventory_logs(product_id, limit=limit, offset=offset)


@router.post("/purchases", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def record_purchase(
    request: PurchaseRequest,
    context: SessionContext = Depends(get_session_context),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> PurchaseResponse:
    """Goods received from a supplier: stock in and new cost prices."""
    return inventory_service.record_purchase(request, context)


@router.get("/purchases", response_model=List[PurchaseResponse])
def list_purchases(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    inventory_service: InventoryService = Depends(get_inventory_service),
) -> List[PurchaseResponse]:
    return inventory_service.list_purchases(limit=limit, offset=offset)
