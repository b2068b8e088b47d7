from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from posapi.schemas.sale import SaleResponse


class DebtPaymentRequest(BaseModel):
    """Payment against a customer's total debt"""

    amount: int = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=255)


class SalePaymentRequest(BaseModel):
    """Payment against one sale; omit amount to settle what is left"""

    amount: Optional[int] = Field(None, gt=0)
    note: Optional[str] = Field(None, max_length=255)


class DebtPaymentEntry(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    sale_id: Optional[int] = None
    amount: int
    remaining_debt: int
    cashier_id: Optional[int] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DebtAllocation(BaseModel):
    sale_id: int
    amount: int
    settled: bool


class DebtPaymentResult(BaseModel):
    payment: DebtPaymentEntry
    remaining_debt: int
    allocations: List[DebtAllocation] = Field(default_factory=list)
    text: Optional[str] = Field(None, description="32-column payment receipt")


class CustomerDebtSummary(BaseModel):
    customer_id: int
    member_id: str
    name: str
    debt: int
    pending_sales: List[SaleResponse] = Field(default_factory=list)
