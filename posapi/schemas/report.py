from pydantic import BaseModel
from typing import Optional
from datetime import date


class SalesSummary(BaseModel):
    """Dashboard headline numbers"""

    total_revenue: int
    total_profit: int
    total_debt: int
    total_savings: int
    sales_count: int
    pending_debt_sales: int
    customer_count: int
    product_count: int
    low_stock_count: int


class DailySalesPoint(BaseModel):
    day: date
    label: str
    amount: int
    orders: int


class LowStockItem(BaseModel):
    product_id: int
    name: str
    stock: int


class MemberPurchaseRow(BaseModel):
    customer_id: int
    member_id: Optional[str] = None
    name: Optional[str] = None
    transaction_count: int
    total_amount: int


class SavingsReportRow(BaseModel):
    customer_id: int
    member_id: str
    name: str
    balance_pokok: int = 0
    balance_wajib: int = 0
    balance_sukarela: int = 0
    total: int = 0
