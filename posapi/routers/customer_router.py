from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_customer_service, get_session_context, require_admin
from posapi.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from posapi.schemas.pagination import PaginationLimits
from posapi.services.customer_service import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    limit: int = Query(
        PaginationLimits.CUSTOMER_LIST["default"],
        ge=PaginationLimits.CUSTOMER_LIST["min"],
        le=PaginationLimits.CUSTOMER_LIST["max"],
    ),
    offset: int = Query(0, ge=0),
    _: SessionContext = Depends(get_session_context),
    customer_service: CustomerService = Depends(get_customer_service),
) -> List[CustomerResponse]:
    """Customers ordered by name."""
    return customer_service.list_customers(limit=limit, offset=offset)


@router.get("/search", response_model=List[CustomerResponse])
def search_customers(
    q: str = Query(..., min_length=1, description="Name or member id"),
    _: SessionContext = Depends(get_session_context),
    customer_service: CustomerService = Depends(get_customer_service),
) -> List[CustomerResponse]:
    return customer_service.search_customers(q)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    request: CustomerCreate,
    _: SessionContext = Depends(get_session_context),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    return customer_service.create_customer(request)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    _: SessionContext = Depends(get_session_context),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    return customer_service.get_customer(customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request: CustomerUpdate,
    _: SessionContext = Depends(get_session_context),
    customer_service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    return customer_service.update_customer(customer_id, request)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    _: SessionContext = Depends(require_admin),
    customer_service: CustomerService = Depends(get_customer_service),
) -> Response:
    """Admin only. Refused while the member holds a savings account."""
    customer_service.delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
