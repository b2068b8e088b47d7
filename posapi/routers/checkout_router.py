from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_checkout_service, get_session_context
from posapi.schemas.pagination import PaginationLimits
from posapi.schemas.sale import CheckoutRequest, Receipt, SaleResponse
from posapi.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])
sales_router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=Receipt, status_code=status.HTTP_201_CREATED)
def checkout(
    request: CheckoutRequest,
    context: SessionContext = Depends(get_session_context),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> Receipt:
    """
    Turn the cart into a sale. Totals come from catalog prices.

    HTTP Status:
        201: sale committed, receipt returned
        400: a line exceeds stock (STOCK_001)
        404: unknown product or customer
        422: empty cart, bad quantity, debt without a customer
    """
    return checkout_service.checkout(request, context)


@sales_router.get("", response_model=List[SaleResponse])
def list_sales(
    customer_id: Optional[int] = Query(None),
    limit: int = Query(
        PaginationLimits.SALES_HISTORY["default"],
        ge=PaginationLimits.SALES_HISTORY["min"],
        le=PaginationLimits.SALES_HISTORY["max"],
    ),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> List[SaleResponse]:
    """Sales newest first."""
    return checkout_service.list_sales(customer_id=customer_id, limit=limit, offset=offset)


@sales_router.get("/{sale_id}/receipt", response_model=Receipt)
def get_receipt(
    sale_id: int,
    context: SessionContext = Depends(get_session_context),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> Receipt:
    """Re-render the receipt of a past sale (reprint)."""
    return checkout_service.get_receipt(sale_id, context)
