import pytest

from posapi.models.savings import SavingsCategory, TransactionType
from posapi.models.sale import PaymentMethod
from posapi.schemas.sale import CartItemRequest
from posapi.schemas.savings import SavingsTransactionRequest
from posapi.services.checkout_service import CheckoutService
from posapi.services.debt_service import DebtService
from posapi.services.report_service import ReportService, sale_profit
from posapi.services.savings_service import SavingsService


@pytest.fixture
def report_service(db, test_settings):
    return ReportService(db, settings=test_settings)


@pytest.fixture
def trading_day(db, test_settings, context, make_product, make_customer):
    """One cash sale, one half-paid debt sale and a pokok deposit"""
    checkout = CheckoutService(db, settings=test_settings)
    tea = make_product(name="Teh Botol", price=5000, cost_price=3500, stock=20)
    customer = make_customer(name="Siti")

    checkout.process_sale(
        items=[CartItemRequest(product_id=tea.id, quantity=2)],
        payment_method=PaymentMethod.CASH,
        context=context,
    )
    debt_sale = checkout.process_sale(
        items=[CartItemRequest(product_id=tea.id, quantity=2)],
        payment_method=PaymentMethod.DEBT,
        context=context,
        customer_id=customer.id,
    )
    DebtService(db, settings=test_settings).pay_sale(debt_sale.id, context, amount=4000)
    SavingsService(db, settings=test_settings).process_transaction(
        customer.id,
        SavingsTransactionRequest(
            type=TransactionType.DEPOSIT, category=SavingsCategory.POKOK, amount=50000
        ),
        context,
    )
    return {"product": tea, "customer": customer, "debt_sale": debt_sale}


class TestReportService:
    def test_sale_profit(self):
        items = [
            {"price": 5000, "cost_price": 3500, "quantity": 2},
            {"price": 72000, "cost_price": 65000, "quantity": 1},
        ]
        assert sale_profit(items) == 3000 + 7000
        assert sale_profit([]) == 0

    def test_summary(self, report_service, trading_day):
        summary = report_service.summary()

        assert summary.total_revenue == 10000 + 4000
        assert summary.total_profit == 3000 + 3000
        assert summary.total_debt == 6000
        assert summary.total_savings == 50000
        assert summary.sales_count == 2
        assert summary.pending_debt_sales == 1
        assert summary.customer_count == 1
        assert summary.product_count == 1
        assert summary.low_stock_count == 0

    def test_daily_sales_counts_today(self, report_service, trading_day):
        points = report_service.daily_sales(days=3)

        assert len(points) == 3
        assert points[0].day < points[-1].day
        assert points[-1].orders == 2
        assert points[-1].amount == 20000
        assert sum(p.orders for p in points[:-1]) == 0

    def test_low_stock(self, report_service, make_product):
        make_product(name="Minyak 2L", stock=1)
        make_product(name="Gula 1kg", stock=30)

        assert [i.name for i in report_service.low_stock(threshold=5)] == ["Minyak 2L"]

    def test_member_purchases(self, report_service, trading_day):
        rows = report_service.member_purchases()

        assert len(rows) == 1
        assert rows[0].name == "Siti"
        assert rows[0].transaction_count == 1
        assert rows[0].total_amount == 10000

    def test_savings_report(self, report_service, trading_day):
        rows = report_service.savings_report()

        assert [(r.name, r.balance_pokok, r.total) for r in rows] == [("Siti", 50000, 50000)]

    def test_pending_debts(self, report_service, trading_day):
        pending = report_service.pending_debts()

        assert [s.id for s in pending] == [trading_day["debt_sale"].id]
        assert pending[0].outstanding == 6000
