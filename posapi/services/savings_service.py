"""
Cooperative savings (simpanan) service.

Every deposit or withdrawal runs as one atomic unit: the category balance on
the account and the ledger entry are written together or not at all. The
account itself is created by the first transaction for a customer.
"""

from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import (
    BaseAPIException,
    InsufficientFundsError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from posapi.core.session_context import SessionContext
from posapi.database.atomic import atomic
from posapi.database.change_feed import Subscription, change_feed
from posapi.models.savings import SavingsAccount, SavingsCategory, TransactionType
from posapi.repositories.customer_repository import CustomerRepository
from posapi.repositories.savings_repository import SavingsRepository
from posapi.schemas.savings import (
    CategoryIntegrity,
    SavingsAccountResponse,
    SavingsAccountStatus,
    SavingsHistoryResponse,
    SavingsIntegrityResponse,
    SavingsTransactionEntry,
    SavingsTransactionRequest,
    SavingsTransactionResponse,
)
from posapi.utils.receipt import format_rupiah
from posapi.utils.timezone_utils import is_same_month, now_utc
import logging

logger = logging.getLogger(__name__)

SAVINGS_COLLECTIONS = ("savings_accounts", "savings_transactions")


class SavingsService:
    """Savings accounts and their ledger"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.savings_repo = SavingsRepository(db)
        self.customer_repo = CustomerRepository(db)

    def process_transaction(
        self,
        customer_id: int,
        request: SavingsTransactionRequest,
        context: SessionContext,
    ) -> SavingsTransactionResponse:
        """Deposit to or withdraw from one savings category

        Args:
            customer_id: member whose account is touched (created if missing)
            request: type, category, amount, description
            context: acting user, recorded on the ledger entry

        Returns:
            SavingsTransactionResponse: committed account and ledger entry

        Raises:
            NotFoundError: unknown customer
            ValidationError: non-positive amount
            InsufficientFundsError: withdrawal larger than the category balance
            TransactionConflictError: lost to concurrent writers on every attempt
        """
        if request.amount <= 0:
            raise ValidationError(
                "Amount must be positive", details={"amount": request.amount}
            )

        category = SavingsCategory(request.category)
        tx_type = TransactionType(request.type)

        def _unit(tx: Session):
            if self.customer_repo.get_model(customer_id) is None:
                raise NotFoundError(
                    f"Customer {customer_id} not found",
                    details={"customer_id": customer_id},
                )

            account = self.savings_repo.get_account_model(customer_id)
            if account is None:
                account = self.savings_repo.add_account(customer_id)
                logger.info(f"Opened savings account for customer {customer_id}")

            field = category.balance_field
            current = getattr(account, field) or 0
            delta = request.amount if tx_type == TransactionType.DEPOSIT else -request.amount
            if current + delta < 0:
                raise InsufficientFundsError(
                    category=category.value,
                    requested=request.amount,
                    available=current,
                )

            now = self.clock()
            setattr(account, field, current + delta)
            if tx_type == TransactionType.DEPOSIT and category == SavingsCategory.WAJIB:
                account.last_wajib_payment = now

            entry = self.savings_repo.add_transaction(
                account=account,
                type=tx_type,
                category=category,
                amount=request.amount,
                date=now,
                description=request.description,
                user_id=context.user_id,
            )
            return account, entry

        try:
            account, entry = atomic(
                self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES,
                name="savings.process_transaction",
            )
        except BaseAPIException as e:
            logger.warning(
                f"Savings {tx_type.value} rejected for customer {customer_id}: {e}"
            )
            raise
        except SQLAlchemyError as e:
            logger.error(f"Savings transaction failed for customer {customer_id}: {str(e)}")
            raise InternalServerError("Failed to process savings transaction")

        verb = "Deposit" if tx_type == TransactionType.DEPOSIT else "Withdrawal"
        message = (
            f"{verb} of {format_rupiah(request.amount)} "
            f"({category.value.capitalize()}) recorded"
        )
        logger.info(
            f"{verb} {request.amount} {category.value} for customer {customer_id} "
            f"by user {context.user_id}"
        )
        return SavingsTransactionResponse(
            success=True,
            account=SavingsAccountResponse.model_validate(account),
            transaction=SavingsTransactionEntry.model_validate(entry),
            message=message,
        )

    def get_account(self, customer_id: int) -> Optional[SavingsAccountResponse]:
        """Account for a customer, None when they never transacted"""
        return self.savings_repo.get_account(customer_id)

    def create_account(self, customer_id: int) -> SavingsAccountResponse:
        """Open an empty account; returns the existing one if already open"""

        def _unit(tx: Session) -> SavingsAccount:
            if self.customer_repo.get_model(customer_id) is None:
                raise NotFoundError(
                    f"Customer {customer_id} not found",
                    details={"customer_id": customer_id},
                )
            account = self.savings_repo.get_account_model(customer_id)
            if account is None:
                account = self.savings_repo.add_account(customer_id)
            return account

        account = atomic(
            self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES,
            name="savings.create_account",
        )
        return SavingsAccountResponse.model_validate(account)

    def get_transactions(
        self, customer_id: int, limit: int = 50, offset: int = 0
    ) -> SavingsHistoryResponse:
        """Ledger entries for a customer, newest first"""
        limit = min(limit, 100)
        entries, total = self.savings_repo.list_transactions(
            customer_id, limit=limit, offset=offset
        )
        return SavingsHistoryResponse(
            account=self.savings_repo.get_account(customer_id),
            entries=entries,
            total_count=total,
            has_next=offset + len(entries) < total,
        )

    def get_account_status(
        self, customer_id: int, now: Optional[datetime] = None
    ) -> SavingsAccountStatus:
        """Balances plus pokok / wajib payment state as of ``now``"""
        if self.customer_repo.get_by_id(customer_id) is None:
            raise NotFoundError(
                f"Customer {customer_id} not found", details={"customer_id": customer_id}
            )

        now = now or self.clock()
        account = self.savings_repo.get_account(customer_id)
        suggested = {
            SavingsCategory.POKOK.value: self.settings.SAVINGS_POKOK_AMOUNT,
            SavingsCategory.WAJIB.value: self.settings.SAVINGS_WAJIB_AMOUNT,
            SavingsCategory.SUKARELA.value: None,
        }
        if account is None:
            return SavingsAccountStatus(
                customer_id=customer_id,
                account_exists=False,
                suggested_deposits=suggested,
            )

        return SavingsAccountStatus(
            customer_id=customer_id,
            account_exists=True,
            balance_pokok=account.balance_pokok,
            balance_wajib=account.balance_wajib,
            balance_sukarela=account.balance_sukarela,
            total_balance=account.total_balance,
            last_wajib_payment=account.last_wajib_payment,
            is_pokok_paid=account.balance_pokok >= self.settings.SAVINGS_POKOK_AMOUNT,
            is_wajib_paid_this_month=is_same_month(
                account.last_wajib_payment, now, self.settings.TIMEZONE
            ),
            suggested_deposits=suggested,
        )

    def verify_account_integrity(self, customer_id: int) -> SavingsIntegrityResponse:
        """Recompute every category balance from the ledger and compare"""
        account = self.savings_repo.get_account_model(customer_id)
        if account is None:
            return SavingsIntegrityResponse(
                status="NO_ACCOUNT", customer_id=customer_id, verified_at=self.clock()
            )

        sums, entry_count = self.savings_repo.ledger_sums(account.id)
        categories = {}
        status = "OK"
        for category in SavingsCategory:
            recorded = getattr(account, category.balance_field) or 0
            calculated = sums.get(category.value, 0)
            categories[category.value] = CategoryIntegrity(
                recorded_balance=recorded, calculated_balance=calculated
            )
            if recorded != calculated:
                status = "MISMATCH"

        if status != "OK":
            logger.error(f"Savings ledger mismatch for customer {customer_id}: {categories}")

        return SavingsIntegrityResponse(
            status=status,
            customer_id=customer_id,
            categories=categories,
            entry_count=entry_count,
            verified_at=self.clock(),
        )

    def subscribe_transactions(
        self, customer_id: int, limit: int = 50
    ) -> Subscription[List[SavingsTransactionEntry]]:
        """Live view of a customer's newest ledger entries"""

        def _query(db: Session) -> List[SavingsTransactionEntry]:
            entries, _ = SavingsRepository(db).list_transactions(customer_id, limit=limit)
            return entries

        return change_feed.subscribe(
            SAVINGS_COLLECTIONS,
            _query,
            session_factory=sessionmaker(bind=self.db.get_bind()),
        )
