import pytest

from posapi.core.exceptions import NotFoundError, ValidationError
from posapi.models.customer import Customer
from posapi.models.debt import DebtPayment
from posapi.models.sale import PaymentMethod, PaymentStatus, Sale
from posapi.schemas.sale import CartItemRequest
from posapi.services.checkout_service import CheckoutService
from posapi.services.debt_service import DebtService


@pytest.fixture
def debt_service(db, test_settings):
    return DebtService(db, settings=test_settings)


@pytest.fixture
def debt_sale(db, test_settings, context, make_product):
    """Ring up a debt sale of ``amount`` for a customer"""
    checkout = CheckoutService(db, settings=test_settings)
    product = make_product(name="Kopi Sachet", price=1000, stock=1000)

    def _sell(customer, amount):
        return checkout.process_sale(
            items=[CartItemRequest(product_id=product.id, quantity=amount // 1000)],
            payment_method=PaymentMethod.DEBT,
            context=context,
            customer_id=customer.id,
        )

    return _sell


def reload(db, model, pk):
    db.expire_all()
    return db.get(model, pk)


class TestPayCustomerDebt:
    """Aggregate payments"""

    def test_oldest_sale_is_paid_first(self, db, debt_service, debt_sale, context, make_customer):
        # Arrange
        customer = make_customer()
        first = debt_sale(customer, 10000)
        second = debt_sale(customer, 6000)
        assert reload(db, Customer, customer.id).debt == 16000

        # Act
        result = debt_service.pay_customer_debt(customer.id, 12000, context)

        # Assert
        assert [(a.sale_id, a.amount, a.settled) for a in result.allocations] == [
            (first.id, 10000, True),
            (second.id, 2000, False),
        ]
        assert result.remaining_debt == 4000
        assert result.payment.sale_id is None
        assert reload(db, Customer, customer.id).debt == 4000

        first_row = reload(db, Sale, first.id)
        second_row = reload(db, Sale, second.id)
        assert first_row.payment_status == PaymentStatus.PAID.value
        assert second_row.payment_status == PaymentStatus.PENDING.value
        assert second_row.outstanding == 4000

    def test_customer_debt_matches_pending_sales(
        self, db, debt_service, debt_sale, context, make_customer
    ):
        customer = make_customer()
        debt_sale(customer, 5000)
        debt_sale(customer, 7000)

        debt_service.pay_customer_debt(customer.id, 8000, context)

        summary = debt_service.get_customer_debt(customer.id)
        assert summary.debt == sum(s.outstanding for s in summary.pending_sales) == 4000

    def test_overpayment_is_rejected(self, db, debt_service, debt_sale, context, make_customer):
        customer = make_customer()
        debt_sale(customer, 5000)

        with pytest.raises(ValidationError) as exc_info:
            debt_service.pay_customer_debt(customer.id, 5001, context)

        assert exc_info.value.details["remaining_debt"] == 5000
        assert db.query(DebtPayment).count() == 0
        assert reload(db, Customer, customer.id).debt == 5000

    @pytest.mark.parametrize("amount", [0, -500])
    def test_non_positive_amount(self, debt_service, context, make_customer, amount):
        customer = make_customer(debt=1000)

        with pytest.raises(ValidationError):
            debt_service.pay_customer_debt(customer.id, amount, context)

    def test_unknown_customer(self, debt_service, context):
        with pytest.raises(NotFoundError):
            debt_service.pay_customer_debt(777, 1000, context)

    def test_opening_debt_without_sales(self, db, debt_service, context, make_customer):
        customer = make_customer(name="Pak Harjo", debt=5000)

        result = debt_service.pay_customer_debt(customer.id, 3000, context, note="cicilan")

        assert result.allocations == []
        assert result.remaining_debt == 2000
        assert result.payment.note == "cicilan"
        assert reload(db, Customer, customer.id).debt == 2000

    def test_payment_receipt_text(self, debt_service, context, make_customer):
        customer = make_customer(name="Pak Harjo", debt=25000)

        result = debt_service.pay_customer_debt(customer.id, 20000, context)

        assert "BUKTI PEMBAYARAN HUTANG" in result.text
        assert "Rp 20.000" in result.text
        assert "Rp 5.000" in result.text


class TestPaySale:
    """Payments against one sale"""

    def test_settle_remaining(self, db, debt_service, debt_sale, context, make_customer):
        customer = make_customer()
        sale = debt_sale(customer, 9000)

        result = debt_service.pay_sale(sale.id, context)

        assert result.payment.amount == 9000
        assert result.payment.sale_id == sale.id
        assert result.allocations[0].settled is True
        assert reload(db, Sale, sale.id).payment_status == PaymentStatus.PAID.value
        assert reload(db, Customer, customer.id).debt == 0

    def test_partial_payment(self, db, debt_service, debt_sale, context, make_customer):
        customer = make_customer()
        sale = debt_sale(customer, 9000)

        result = debt_service.pay_sale(sale.id, context, amount=4000)

        assert result.allocations[0].settled is False
        assert result.remaining_debt == 5000
        row = reload(db, Sale, sale.id)
        assert row.amount_paid == 4000
        assert row.payment_status == PaymentStatus.PENDING.value

    def test_overpayment_is_rejected(self, db, debt_service, debt_sale, context, make_customer):
        customer = make_customer()
        sale = debt_sale(customer, 3000)

        with pytest.raises(ValidationError):
            debt_service.pay_sale(sale.id, context, amount=3500)

        assert reload(db, Sale, sale.id).amount_paid == 0
        assert db.query(DebtPayment).count() == 0

    def test_settled_sale_is_rejected(self, debt_service, debt_sale, context, make_customer):
        customer = make_customer()
        sale = debt_sale(customer, 3000)
        debt_service.pay_sale(sale.id, context)

        with pytest.raises(ValidationError):
            debt_service.pay_sale(sale.id, context)

    def test_cash_sale_is_rejected(self, db, debt_service, test_settings, context, make_product):
        product = make_product()
        sale = CheckoutService(db, settings=test_settings).process_sale(
            items=[CartItemRequest(product_id=product.id, quantity=1)],
            payment_method=PaymentMethod.CASH,
            context=context,
        )

        with pytest.raises(ValidationError):
            debt_service.pay_sale(sale.id, context)

    def test_unknown_sale(self, debt_service, context):
        with pytest.raises(NotFoundError):
            debt_service.pay_sale(31337, context)


class TestHistory:
    def test_newest_first_per_customer(self, debt_service, context, make_customer):
        budi = make_customer(name="Budi", debt=10000)
        siti = make_customer(name="Siti", debt=10000)
        debt_service.pay_customer_debt(budi.id, 1000, context)
        debt_service.pay_customer_debt(siti.id, 2000, context)
        debt_service.pay_customer_debt(budi.id, 3000, context)

        budi_history = debt_service.get_payment_history(budi.id)
        everything = debt_service.get_payment_history()

        assert [p.amount for p in budi_history] == [3000, 1000]
        assert [p.remaining_debt for p in budi_history] == [6000, 9000]
        assert len(everything) == 3

    def test_list_debtors_largest_first(self, debt_service, make_customer):
        make_customer(name="Ani", debt=2000)
        make_customer(name="Budi", debt=0)
        make_customer(name="Citra", debt=9000)

        assert [c.name for c in debt_service.list_debtors()] == ["Citra", "Ani"]
