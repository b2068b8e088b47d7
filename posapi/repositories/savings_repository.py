"""
Savings repository - account rows and the append-only ledger.

Nothing in here commits. Writes are staged on the session and flushed so that
version checks and the one-account-per-customer unique key fire inside the
caller's atomic unit.
"""

from typing import Dict, List, Optional, Tuple
from datetime import datetime

from sqlalchemy import case, desc, func
from sqlalchemy.orm import Session

from posapi.models.savings import (
    SavingsAccount,
    SavingsCategory,
    SavingsTransaction,
    TransactionType,
)
from posapi.repositories.base import BaseRepository
from posapi.schemas.savings import SavingsAccountResponse, SavingsTransactionEntry


class SavingsRepository(BaseRepository[SavingsAccount, SavingsAccountResponse]):
    def __init__(self, db: Session):
        super().__init__(SavingsAccount, SavingsAccountResponse, db)

    def get_account_model(self, customer_id: int) -> Optional[SavingsAccount]:
        return (
            self.db.query(SavingsAccount)
            .filter(SavingsAccount.customer_id == customer_id)
            .first()
        )

    def get_account(self, customer_id: int) -> Optional[SavingsAccountResponse]:
        return self._to_schema(self.get_account_model(customer_id))

    def add_account(self, customer_id: int) -> SavingsAccount:
        """
        Stage a zero-balance account. A concurrent creator for the same
        customer makes this flush fail with IntegrityError.
        """
        return self.add(
            customer_id=customer_id,
            balance_pokok=0,
            balance_wajib=0,
            balance_sukarela=0,
        )

    def add_transaction(
        self,
        account: SavingsAccount,
        type: TransactionType,
        category: SavingsCategory,
        amount: int,
        date: datetime,
        description: str = "",
        user_id: Optional[int] = None,
    ) -> SavingsTransaction:
        entry = SavingsTransaction(
            savings_account_id=account.id,
            customer_id=account.customer_id,
            type=type.value,
            category=category.value,
            amount=amount,
            date=date,
            description=description,
            user_id=user_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_transactions(
        self, customer_id: int, limit: int = 50, offset: int = 0
    ) -> Tuple[List[SavingsTransactionEntry], int]:
        """Ledger page for a customer, newest first, plus the total entry count"""
        query = self.db.query(SavingsTransaction).filter(
            SavingsTransaction.customer_id == customer_id
        )
        total = query.count()
        rows = (
            query.order_by(desc(SavingsTransaction.date), desc(SavingsTransaction.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [SavingsTransactionEntry.model_validate(r) for r in rows], total

    def ledger_sums(self, account_id: int) -> Tuple[Dict[str, int], int]:
        """Net ledger amount per category (deposits minus withdrawals)"""
        signed = case(
            (SavingsTransaction.type == TransactionType.WITHDRAWAL.value,
             -SavingsTransaction.amount),
            else_=SavingsTransaction.amount,
        )
        rows = (
            self.db.query(
                SavingsTransaction.category,
                func.coalesce(func.sum(signed), 0),
                func.count(SavingsTransaction.id),
            )
            .filter(SavingsTransaction.savings_account_id == account_id)
            .group_by(SavingsTransaction.category)
            .all()
        )
        sums = {category.value: 0 for category in SavingsCategory}
        entry_count = 0
        for category, total, count in rows:
            sums[category] = int(total or 0)
            entry_count += count
        return sums, entry_count

    def total_balances(self) -> int:
        total = self.db.query(
            func.coalesce(
                func.sum(
                    SavingsAccount.balance_pokok
                    + SavingsAccount.balance_wajib
                    + SavingsAccount.balance_sukarela
                ),
                0,
            )
        ).scalar()
        return int(total or 0)

    def list_accounts(self) -> List[SavingsAccount]:
        return self.db.query(SavingsAccount).order_by(SavingsAccount.customer_id).all()
