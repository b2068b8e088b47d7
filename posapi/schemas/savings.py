from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from posapi.models.savings import SavingsCategory, TransactionType


class SavingsTransactionRequest(BaseModel):
    """Deposit or withdrawal request for one savings category"""

    type: TransactionType = Field(..., description="deposit | withdrawal")
    category: SavingsCategory = Field(..., description="pokok | wajib | sukarela")
    amount: int = Field(..., gt=0, description="Amount in Rupiah")
    description: str = Field("", max_length=255, description="Free text note")


class SavingsAccountResponse(BaseModel):
    """Savings account balances"""

    id: int = Field(..., description="Account ID")
    customer_id: int = Field(..., description="Customer ID")
    balance_pokok: int = Field(0, description="Principal balance")
    balance_wajib: int = Field(0, description="Mandatory balance")
    balance_sukarela: int = Field(0, description="Voluntary balance")
    last_wajib_payment: Optional[datetime] = Field(
        None, description="Time of the most recent wajib deposit"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def total_balance(self) -> int:
        return self.balance_pokok + self.balance_wajib + self.balance_sukarela


class SavingsTransactionEntry(BaseModel):
    """Ledger entry"""

    id: int
    savings_account_id: int
    customer_id: int
    type: TransactionType
    category: SavingsCategory
    amount: int
    date: datetime
    description: str = ""
    user_id: Optional[int] = None

    class Config:
        from_attributes = True


class SavingsTransactionResponse(BaseModel):
    """Result of a committed deposit/withdrawal"""

    success: bool = Field(True, description="Always true; failures raise")
    account: SavingsAccountResponse
    transaction: SavingsTransactionEntry
    message: str = Field(..., description="Human readable result")


class SavingsHistoryResponse(BaseModel):
    """Ledger page, newest first"""

    account: Optional[SavingsAccountResponse] = None
    entries: List[SavingsTransactionEntry] = Field(default_factory=list)
    total_count: int = 0
    has_next: bool = False


class SavingsAccountStatus(BaseModel):
    """Balances plus the pokok/wajib payment conventions for one member"""

    customer_id: int
    account_exists: bool
    balance_pokok: int = 0
    balance_wajib: int = 0
    balance_sukarela: int = 0
    total_balance: int = 0
    last_wajib_payment: Optional[datetime] = None
    is_pokok_paid: bool = Field(
        False, description="Principal reached the configured pokok amount"
    )
    is_wajib_paid_this_month: bool = Field(
        False, description="A wajib deposit landed in the current calendar month"
    )
    suggested_deposits: Dict[str, Optional[int]] = Field(
        default_factory=dict,
        description="Default deposit amount per category (None = free amount)",
    )


class CategoryIntegrity(BaseModel):
    recorded_balance: int
    calculated_balance: int


class SavingsIntegrityResponse(BaseModel):
    """Ledger vs balance verification"""

    status: str = Field(..., description="OK | MISMATCH | NO_ACCOUNT")
    customer_id: int
    categories: Dict[str, CategoryIntegrity] = Field(default_factory=dict)
    entry_count: int = 0
    verified_at: datetime
