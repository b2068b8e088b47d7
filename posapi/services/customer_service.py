from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import ConflictError, NotFoundError, ValidationError
from posapi.repositories.customer_repository import CustomerRepository
from posapi.repositories.debt_repository import DebtPaymentRepository
from posapi.repositories.sale_repository import SaleRepository
from posapi.repositories.savings_repository import SavingsRepository
from posapi.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
import logging

logger = logging.getLogger(__name__)


class CustomerService:
    """Customers / cooperative members"""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.customer_repo = CustomerRepository(db)
        self.savings_repo = SavingsRepository(db)
        self.sale_repo = SaleRepository(db)
        self.debt_payment_repo = DebtPaymentRepository(db)

    def list_customers(self, limit: Optional[int] = None, offset: int = 0) -> List[CustomerResponse]:
        return self.customer_repo.list_customers(limit=limit, offset=offset)

    def search_customers(self, term: str, limit: int = 50) -> List[CustomerResponse]:
        if not term or not term.strip():
            return []
        return self.customer_repo.search(term, limit=limit)

    def get_customer(self, customer_id: int) -> CustomerResponse:
        customer = self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(
                f"Customer {customer_id} not found", details={"customer_id": customer_id}
            )
        return customer

    def create_customer(self, request: CustomerCreate) -> CustomerResponse:
        """Register a customer; member id defaults to the next M-xxxx"""
        member_id = (request.member_id or "").strip() or self.customer_repo.next_member_id()
        if self.customer_repo.get_by_member_id(member_id) is not None:
            raise ConflictError(
                f"Member ID {member_id} already exists", details={"member_id": member_id}
            )
        try:
            customer = self.customer_repo.create(
                member_id=member_id,
                name=request.name,
                phone=request.phone,
                address=request.address,
                join_date=request.join_date,
                total_spent=0,
                debt=request.opening_debt,
            )
        except IntegrityError:
            raise ConflictError(
                f"Member ID {member_id} already exists", details={"member_id": member_id}
            )
        logger.info(f"Created customer {customer.id} ({member_id})")
        return customer

    def update_customer(self, customer_id: int, request: CustomerUpdate) -> CustomerResponse:
        changes = request.model_dump(exclude_unset=True)
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("Name cannot be empty")
        member_id = changes.get("member_id")
        if member_id:
            existing = self.customer_repo.get_by_member_id(member_id)
            if existing is not None and existing.id != customer_id:
                raise ConflictError(
                    f"Member ID {member_id} already exists",
                    details={"member_id": member_id},
                )
        customer = self.customer_repo.update(customer_id, **changes)
        if customer is None:
            raise NotFoundError(
                f"Customer {customer_id} not found", details={"customer_id": customer_id}
            )
        logger.info(f"Updated customer {customer_id}: {sorted(changes)}")
        return customer

    def delete_customer(self, customer_id: int) -> None:
        """Members with savings, sales or debt payments cannot be deleted"""
        if self.customer_repo.get_by_id(customer_id) is None:
            raise NotFoundError(
                f"Customer {customer_id} not found", details={"customer_id": customer_id}
            )
        if self.savings_repo.get_account(customer_id) is not None:
            raise ConflictError(
                "Customer has a savings account and cannot be deleted",
                details={"customer_id": customer_id},
            )
        has_history = self.sale_repo.exists(
            {"customer_id": customer_id}
        ) or self.debt_payment_repo.exists({"customer_id": customer_id})
        if has_history:
            raise ConflictError(
                "Customer has sales or payments and cannot be deleted",
                details={"customer_id": customer_id},
            )
        try:
            self.customer_repo.delete(customer_id)
        except IntegrityError:
            raise ConflictError(
                "Customer has sales or payments and cannot be deleted",
                details={"customer_id": customer_id},
            )
        logger.info(f"Deleted customer {customer_id}")
