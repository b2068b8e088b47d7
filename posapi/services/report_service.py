from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.models.sale import PaymentMethod, PaymentStatus
from posapi.repositories.customer_repository import CustomerRepository
from posapi.repositories.debt_repository import DebtPaymentRepository
from posapi.repositories.product_repository import ProductRepository
from posapi.repositories.sale_repository import SaleRepository
from posapi.repositories.savings_repository import SavingsRepository
from posapi.schemas.report import (
    DailySalesPoint,
    LowStockItem,
    MemberPurchaseRow,
    SalesSummary,
    SavingsReportRow,
)
from posapi.schemas.sale import SaleResponse
from posapi.utils.timezone_utils import get_local_tz, now_utc, to_local
import logging

logger = logging.getLogger(__name__)


def sale_profit(items: List[dict]) -> int:
    """Σ (price - cost_price) x quantity over the sale lines"""
    return sum(
        ((item.get("price") or 0) - (item.get("cost_price") or 0)) * (item.get("quantity") or 0)
        for item in items or []
    )


class ReportService:
    """Dashboard and report figures, computed from committed data"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.sale_repo = SaleRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.product_repo = ProductRepository(db)
        self.savings_repo = SavingsRepository(db)
        self.payment_repo = DebtPaymentRepository(db)

    def summary(self) -> SalesSummary:
        """
        Revenue is money actually received: paid non-debt sales plus debt
        payments. Debt sales count once their payments come in.
        """
        sales = self.sale_repo.completed_since()
        cash_revenue = sum(
            s.total_amount
            for s in sales
            if s.payment_method != PaymentMethod.DEBT.value
            and s.payment_status == PaymentStatus.PAID.value
        )
        pending_debt = [
            s
            for s in sales
            if s.payment_method == PaymentMethod.DEBT.value
            and s.payment_status == PaymentStatus.PENDING.value
        ]
        return SalesSummary(
            total_revenue=cash_revenue + self.payment_repo.total_paid(),
            total_profit=sum(sale_profit(s.items) for s in sales),
            total_debt=self.customer_repo.total_debt(),
            total_savings=self.savings_repo.total_balances(),
            sales_count=len(sales),
            pending_debt_sales=len(pending_debt),
            customer_count=self.customer_repo.count(),
            product_count=self.product_repo.count(),
            low_stock_count=len(self.product_repo.low_stock(self.settings.LOW_STOCK_THRESHOLD)),
        )

    def daily_sales(self, days: int = 7, now: Optional[datetime] = None) -> List[DailySalesPoint]:
        """Sales per local calendar day, oldest first, ending today"""
        days = max(1, min(days, 90))
        tz = get_local_tz(self.settings.TIMEZONE)
        today = to_local(now or self.clock(), self.settings.TIMEZONE).date()
        first_day = today - timedelta(days=days - 1)

        buckets: "OrderedDict[object, Dict[str, int]]" = OrderedDict(
            (first_day + timedelta(days=i), {"amount": 0, "orders": 0})
            for i in range(days)
        )

        start = tz.localize(datetime.combine(first_day, datetime.min.time())).astimezone(
            timezone.utc
        )
        for sale in self.sale_repo.completed_since(start):
            if sale.created_at is None:
                continue
            day = to_local(sale.created_at, self.settings.TIMEZONE).date()
            if day in buckets:
                buckets[day]["amount"] += sale.total_amount
                buckets[day]["orders"] += 1

        return [
            DailySalesPoint(
                day=day, label=day.strftime("%a"), amount=v["amount"], orders=v["orders"]
            )
            for day, v in buckets.items()
        ]

    def low_stock(self, threshold: Optional[int] = None) -> List[LowStockItem]:
        if threshold is None:
            threshold = self.settings.LOW_STOCK_THRESHOLD
        return [
            LowStockItem(product_id=p.id, name=p.name, stock=p.stock)
            for p in self.product_repo.low_stock(threshold)
        ]

    def member_purchases(self) -> List[MemberPurchaseRow]:
        """Purchase totals per registered customer, biggest spender first"""
        rows: Dict[int, MemberPurchaseRow] = {}
        for sale in self.sale_repo.completed_since():
            if sale.customer_id is None:
                continue
            row = rows.get(sale.customer_id)
            if row is None:
                customer = self.customer_repo.get_by_id(sale.customer_id)
                row = MemberPurchaseRow(
                    customer_id=sale.customer_id,
                    member_id=customer.member_id if customer else None,
                    name=customer.name if customer else sale.customer_name,
                    transaction_count=0,
                    total_amount=0,
                )
                rows[sale.customer_id] = row
            row.transaction_count += 1
            row.total_amount += sale.total_amount
        return sorted(rows.values(), key=lambda r: r.total_amount, reverse=True)

    def savings_report(self) -> List[SavingsReportRow]:
        """Balances of every member with a savings account"""
        report = []
        for account in self.savings_repo.list_accounts():
            customer = self.customer_repo.get_by_id(account.customer_id)
            if customer is None:
                logger.warning(f"Savings account {account.id} has no customer")
                continue
            report.append(
                SavingsReportRow(
                    customer_id=customer.id,
                    member_id=customer.member_id,
                    name=customer.name,
                    balance_pokok=account.balance_pokok,
                    balance_wajib=account.balance_wajib,
                    balance_sukarela=account.balance_sukarela,
                    total=account.balance_pokok
                    + account.balance_wajib
                    + account.balance_sukarela,
                )
            )
        return sorted(report, key=lambda r: r.name)

    def pending_debts(self) -> List[SaleResponse]:
        """Debt sales not yet settled, oldest first"""
        return [SaleResponse.model_validate(s) for s in self.sale_repo.pending_debt_sales()]
