"""
Debt (hutang) payments.

The receivable lives on the debt sales themselves: ``total_amount -
amount_paid`` of every pending debt sale. ``Customer.debt`` is the running sum
kept in step inside the same atomic unit, plus any opening balance carried
over from before the customer was registered.
"""

from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import (
    BaseAPIException,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from posapi.core.session_context import SessionContext
from posapi.database.atomic import atomic
from posapi.models.debt import DebtPayment
from posapi.models.sale import PaymentMethod, PaymentStatus
from posapi.repositories.customer_repository import CustomerRepository
from posapi.repositories.debt_repository import DebtPaymentRepository
from posapi.repositories.sale_repository import SaleRepository
from posapi.schemas.customer import CustomerResponse
from posapi.schemas.debt import (
    CustomerDebtSummary,
    DebtAllocation,
    DebtPaymentEntry,
    DebtPaymentResult,
)
from posapi.schemas.sale import SaleResponse
from posapi.utils.receipt import render_debt_payment_receipt
from posapi.utils.timezone_utils import now_utc
import logging

logger = logging.getLogger(__name__)


class DebtService:
    """Customer debt payments and history"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.customer_repo = CustomerRepository(db)
        self.sale_repo = SaleRepository(db)
        self.payment_repo = DebtPaymentRepository(db)

    def pay_customer_debt(
        self,
        customer_id: int,
        amount: int,
        context: SessionContext,
        note: Optional[str] = None,
    ) -> DebtPaymentResult:
        """Pay against a customer's total debt, oldest pending sale first

        Whatever is left after every pending sale is settled goes against the
        opening balance, which only exists on the customer row.
        """
        self._check_amount(amount)

        def _unit(tx: Session):
            customer = self.customer_repo.get_model(customer_id)
            if customer is None:
                raise NotFoundError(
                    f"Customer {customer_id} not found",
                    details={"customer_id": customer_id},
                )
            debt = customer.debt or 0
            if amount > debt:
                raise ValidationError(
                    "Payment exceeds remaining debt",
                    details={"amount": amount, "remaining_debt": debt},
                )

            allocations: List[DebtAllocation] = []
            left = amount
            for sale in self.sale_repo.pending_debt_sales(customer_id):
                if left <= 0:
                    break
                applied = min(left, sale.outstanding)
                if applied <= 0:
                    continue
                sale.amount_paid = (sale.amount_paid or 0) + applied
                if sale.outstanding <= 0:
                    sale.payment_status = PaymentStatus.PAID.value
                allocations.append(
                    DebtAllocation(
                        sale_id=sale.id,
                        amount=applied,
                        settled=sale.payment_status == PaymentStatus.PAID.value,
                    )
                )
                left -= applied

            customer.debt = debt - amount
            payment = self.payment_repo.add(
                customer_id=customer.id,
                customer_name=customer.name,
                sale_id=None,
                amount=amount,
                remaining_debt=customer.debt,
                cashier_id=context.user_id,
                note=note,
            )
            tx.flush()
            return payment, allocations

        payment, allocations = self._run(_unit, "debt.pay_customer_debt")
        if amount - sum(a.amount for a in allocations) > 0:
            logger.info(
                f"Customer {customer_id}: {amount - sum(a.amount for a in allocations)} "
                f"applied to opening debt"
            )
        logger.info(
            f"Debt payment {payment.id}: customer {customer_id} paid {amount}, "
            f"remaining {payment.remaining_debt}"
        )
        return self._result(payment, allocations, context)

    def pay_sale(
        self,
        sale_id: int,
        context: SessionContext,
        amount: Optional[int] = None,
        note: Optional[str] = None,
    ) -> DebtPaymentResult:
        """Pay against one debt sale; ``amount=None`` settles what is left"""
        if amount is not None:
            self._check_amount(amount)

        def _unit(tx: Session):
            sale = self.sale_repo.get_model(sale_id)
            if sale is None:
                raise NotFoundError(
                    f"Sale {sale_id} not found", details={"sale_id": sale_id}
                )
            if (
                sale.payment_method != PaymentMethod.DEBT.value
                or sale.payment_status != PaymentStatus.PENDING.value
                or sale.outstanding <= 0
            ):
                raise ValidationError(
                    "Sale has no outstanding debt", details={"sale_id": sale_id}
                )

            outstanding = sale.outstanding
            paying = outstanding if amount is None else amount
            if paying > outstanding:
                raise ValidationError(
                    "Payment exceeds remaining debt",
                    details={"amount": paying, "remaining_debt": outstanding},
                )

            sale.amount_paid = (sale.amount_paid or 0) + paying
            if sale.outstanding <= 0:
                sale.payment_status = PaymentStatus.PAID.value

            remaining = 0
            customer = None
            if sale.customer_id is not None:
                customer = self.customer_repo.get_model(sale.customer_id)
            if customer is not None:
                customer.debt = max((customer.debt or 0) - paying, 0)
                remaining = customer.debt

            payment = self.payment_repo.add(
                customer_id=sale.customer_id,
                customer_name=customer.name if customer else sale.customer_name,
                sale_id=sale.id,
                amount=paying,
                remaining_debt=remaining,
                cashier_id=context.user_id,
                note=note,
            )
            allocation = DebtAllocation(
                sale_id=sale.id,
                amount=paying,
                settled=sale.payment_status == PaymentStatus.PAID.value,
            )
            tx.flush()
            return payment, [allocation]

        payment, allocations = self._run(_unit, "debt.pay_sale")
        logger.info(
            f"Debt payment {payment.id}: sale {sale_id} paid {payment.amount}, "
            f"settled={allocations[0].settled}"
        )
        return self._result(payment, allocations, context)

    def get_payment_history(
        self, customer_id: Optional[int] = None, limit: int = 100, offset: int = 0
    ) -> List[DebtPaymentEntry]:
        """Payments newest first, optionally for one customer"""
        return self.payment_repo.history(customer_id, limit=limit, offset=offset)

    def get_customer_debt(self, customer_id: int) -> CustomerDebtSummary:
        customer = self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(
                f"Customer {customer_id} not found", details={"customer_id": customer_id}
            )
        pending = self.sale_repo.pending_debt_sales(customer_id)
        return CustomerDebtSummary(
            customer_id=customer.id,
            member_id=customer.member_id,
            name=customer.name,
            debt=customer.debt,
            pending_sales=[SaleResponse.model_validate(s) for s in pending],
        )

    def list_debtors(self) -> List[CustomerResponse]:
        """Customers that still owe something, largest debt first"""
        debtors = [c for c in self.customer_repo.list_customers() if c.debt > 0]
        return sorted(debtors, key=lambda c: c.debt, reverse=True)

    def _check_amount(self, amount: int) -> None:
        if amount is None or amount <= 0:
            raise ValidationError(
                "Payment amount must be positive", details={"amount": amount}
            )

    def _run(self, unit, name: str):
        try:
            return atomic(self.db, unit, self.settings.TRANSACTION_MAX_RETRIES, name=name)
        except BaseAPIException as e:
            logger.warning(f"{name} rejected: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"{name} failed: {str(e)}")
            raise InternalServerError("Failed to record debt payment")

    def _result(
        self,
        payment: DebtPayment,
        allocations: List[DebtAllocation],
        context: SessionContext,
    ) -> DebtPaymentResult:
        entry = DebtPaymentEntry.model_validate(payment)
        return DebtPaymentResult(
            payment=entry,
            remaining_debt=entry.remaining_debt,
            allocations=allocations,
            text=render_debt_payment_receipt(
                customer_name=entry.customer_name or "-",
                amount=entry.amount,
                remaining_debt=entry.remaining_debt,
                created_at=entry.created_at or self.clock(),
                cashier_name=context.name,
            ),
        )
