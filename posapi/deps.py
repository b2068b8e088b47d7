from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from posapi.core.exceptions import AuthenticationError, AuthorizationError
from posapi.core.session_context import SessionContext
from posapi.database.session import get_db

# Services
from posapi.services.auth_service import AuthService
from posapi.services.checkout_service import CheckoutService
from posapi.services.customer_service import CustomerService
from posapi.services.debt_service import DebtService
from posapi.services.inventory_service import InventoryService
from posapi.services.order_service import OrderService
from posapi.services.product_service import ProductService
from posapi.services.report_service import ReportService
from posapi.services.savings_service import SavingsService

bearer_scheme = HTTPBearer(auto_error=False)


def _services(request: Request):
    return request.app.container.services


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    return _services(request).auth_service(db=db)


def get_savings_service(request: Request, db: Session = Depends(get_db)) -> SavingsService:
    return _services(request).savings_service(db=db)


def get_checkout_service(request: Request, db: Session = Depends(get_db)) -> CheckoutService:
    return _services(request).checkout_service(db=db)


def get_debt_service(request: Request, db: Session = Depends(get_db)) -> DebtService:
    return _services(request).debt_service(db=db)


def get_inventory_service(request: Request, db: Session = Depends(get_db)) -> InventoryService:
    return _services(request).inventory_service(db=db)


def get_product_service(request: Request, db: Session = Depends(get_db)) -> ProductService:
    return _services(request).product_service(db=db)


def get_customer_service(request: Request, db: Session = Depends(get_db)) -> CustomerService:
    return _services(request).customer_service(db=db)


def get_report_service(request: Request, db: Session = Depends(get_db)) -> ReportService:
    return _services(request).report_service(db=db)


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    return _services(request).order_service(db=db)


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionContext:
    """Acting user for the request; 401 without a live session"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return auth_service.resolve_session(credentials.credentials)


def require_admin(
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    if not context.is_admin:
        raise AuthorizationError("Admin privileges required")
    return context
