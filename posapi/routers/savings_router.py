"""
Savings (simpanan) API

- POST /savings/{customer_id}/transactions: deposit / withdrawal
- GET  /savings/{customer_id}: account (404 until the first transaction)
- POST /savings/{customer_id}: open an empty account (idempotent)
- GET  /savings/{customer_id}/transactions: ledger, newest first
- GET  /savings/{customer_id}/status: pokok / wajib payment state
- GET  /savings/{customer_id}/integrity: ledger vs balance check
"""

from fastapi import APIRouter, Depends, Query

from posapi.core.exceptions import NotFoundError
from posapi.core.session_context import SessionContext
from posapi.deps import get_savings_service, get_session_context
from posapi.schemas.pagination import PaginationLimits
from posapi.schemas.savings import (
    SavingsAccountResponse,
    SavingsAccountStatus,
    SavingsHistoryResponse,
    SavingsIntegrityResponse,
    SavingsTransactionRequest,
    SavingsTransactionResponse,
)
from posapi.services.savings_service import SavingsService

router = APIRouter(prefix="/savings", tags=["savings"])


@router.post("/{customer_id}/transactions", response_model=SavingsTransactionResponse)
def process_transaction(
    customer_id: int,
    request: SavingsTransactionRequest,
    context: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsTransactionResponse:
    """
    Deposit to or withdraw from one category.

    HTTP Status:
        200: committed
        400: withdrawal larger than the category balance (BALANCE_001)
        404: unknown customer
        409: kept conflicting with concurrent writers (CONFLICT_002)
    """
    return savings_service.process_transaction(customer_id, request, context)


@router.get("/{customer_id}", response_model=SavingsAccountResponse)
def get_account(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsAccountResponse:
    account = savings_service.get_account(customer_id)
    if account is None:
        raise NotFoundError(
            "Savings account not found", details={"customer_id": customer_id}
        )
    return account


@router.post("/{customer_id}", response_model=SavingsAccountResponse)
def create_account(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsAccountResponse:
    return savings_service.create_account(customer_id)


@router.get("/{customer_id}/transactions", response_model=SavingsHistoryResponse)
def get_transactions(
    customer_id: int,
    limit: int = Query(
        PaginationLimits.SAVINGS_LEDGER["default"],
        ge=PaginationLimits.SAVINGS_LEDGER["min"],
        le=PaginationLimits.SAVINGS_LEDGER["max"],
    ),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsHistoryResponse:
    return savings_service.get_transactions(customer_id, limit=limit, offset=offset)


@router.get("/{customer_id}/status", response_model=SavingsAccountStatus)
def get_account_status(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsAccountStatus:
    return savings_service.get_account_status(customer_id)


@router.get("/{customer_id}/integrity", response_model=SavingsIntegrityResponse)
def verify_integrity(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    savings_service: SavingsService = Depends(get_savings_service),
) -> SavingsIntegrityResponse:
    return savings_service.verify_account_integrity(customer_id)
