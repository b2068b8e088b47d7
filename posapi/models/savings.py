"""
Cooperative savings (simpanan) models

One ``SavingsAccount`` per customer with three category balances:
- pokok: principal, paid once
- wajib: mandatory, paid monthly
- sukarela: voluntary, any time

``SavingsTransaction`` is the append-only ledger. For every account and
category, deposits minus withdrawals equal the account's balance; both are
written in the same atomic unit.
"""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.schema import CheckConstraint

from posapi.models.base import BaseModel


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class SavingsCategory(str, enum.Enum):
    POKOK = "pokok"
    WAJIB = "wajib"
    SUKARELA = "sukarela"

    @property
    def balance_field(self) -> str:
        return f"balance_{self.value}"


class SavingsAccount(BaseModel):
    __tablename__ = "savings_accounts"
    __table_args__ = (
        CheckConstraint("balance_pokok >= 0", name="ck_savings_pokok_non_negative"),
        CheckConstraint("balance_wajib >= 0", name="ck_savings_wajib_non_negative"),
        CheckConstraint(
            "balance_sukarela >= 0", name="ck_savings_sukarela_non_negative"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # at most one account per customer
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, unique=True)

    balance_pokok = Column(Integer, nullable=False, default=0)
    balance_wajib = Column(Integer, nullable=False, default=0)
    balance_sukarela = Column(Integer, nullable=False, default=0)

    # stamped by wajib deposits only; drives "paid this month"
    last_wajib_payment = Column(DateTime(timezone=True))

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class SavingsTransaction(BaseModel):
    """Ledger entry. Never updated or deleted once written."""

    __tablename__ = "savings_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    savings_account_id = Column(
        Integer, ForeignKey("savings_accounts.id"), nullable=False, index=True
    )
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    category = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    description = Column(Text, nullable=False, default="")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
