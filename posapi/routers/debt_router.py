from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from posapi.core.session_context import SessionContext
from posapi.deps import get_debt_service, get_session_context
from posapi.schemas.customer import CustomerResponse
from posapi.schemas.debt import (
    CustomerDebtSummary,
    DebtPaymentEntry,
    DebtPaymentRequest,
    DebtPaymentResult,
    SalePaymentRequest,
)
from posapi.schemas.pagination import PaginationLimits
from posapi.services.debt_service import DebtService

router = APIRouter(prefix="/debts", tags=["debts"])


@router.get("", response_model=List[CustomerResponse])
def list_debtors(
    _: SessionContext = Depends(get_session_context),
    debt_service: DebtService = Depends(get_debt_service),
) -> List[CustomerResponse]:
    """Customers with outstanding debt, largest first."""
    return debt_service.list_debtors()


@router.get("/payments", response_model=List[DebtPaymentEntry])
def payment_history(
    customer_id: Optional[int] = Query(None),
    limit: int = Query(
        PaginationLimits.DEBT_PAYMENTS["default"],
        ge=PaginationLimits.DEBT_PAYMENTS["min"],
        le=PaginationLimits.DEBT_PAYMENTS["max"],
    ),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    debt_service: DebtService = Depends(get_debt_service),
) -> List[DebtPaymentEntry]:
    return debt_service.get_payment_history(customer_id, limit=limit, offset=offset)


@router.get("/customers/{customer_id}", response_model=CustomerDebtSummary)
def customer_debt(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    debt_service: DebtService = Depends(get_debt_service),
) -> CustomerDebtSummary:
    return debt_service.get_customer_debt(customer_id)


@router.post("/customers/{customer_id}/payments", response_model=DebtPaymentResult)
def pay_customer_debt(
    customer_id: int,
    request: DebtPaymentRequest,
    context: SessionContext = Depends(get_session_context),
    debt_service: DebtService = Depends(get_debt_service),
) -> DebtPaymentResult:
    """Pay down a customer's debt; oldest pending sale is settled first."""
    return debt_service.pay_customer_debt(
        customer_id, request.amount, context, note=request.note
    )


@router.post("/sales/{sale_id}/payments", response_model=DebtPaymentResult)
def pay_sale(
    sale_id: int,
    request: SalePaymentRequest,
    context: SessionContext = Depends(get_session_context),
    debt_service: DebtService = Depends(get_debt_service),
) -> DebtPaymentResult:
    """Pay one debt sale; without an amount the remainder is settled."""
    return debt_service.pay_sale(
        sale_id, context, amount=request.amount, note=request.note
    )
