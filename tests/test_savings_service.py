import pytest
from datetime import datetime, timezone

from posapi.core.exceptions import (
    InsufficientFundsError,
    NotFoundError,
    TransactionConflictError,
)
from posapi.models.savings import (
    SavingsAccount,
    SavingsCategory,
    SavingsTransaction,
    TransactionType,
)
from posapi.schemas.savings import SavingsTransactionRequest
from posapi.services.savings_service import SavingsService


def deposit(category, amount, description=""):
    return SavingsTransactionRequest(
        type=TransactionType.DEPOSIT, category=category, amount=amount,
        description=description,
    )


def withdraw(category, amount):
    return SavingsTransactionRequest(
        type=TransactionType.WITHDRAWAL, category=category, amount=amount
    )


def fixed_clock(moment):
    return lambda: moment


@pytest.fixture
def savings_service(db, test_settings):
    return SavingsService(db, settings=test_settings)


class TestProcessTransaction:
    """Deposits and withdrawals"""

    def test_first_deposit_opens_account(self, db, savings_service, context, make_customer):
        """New member pays pokok: account created, one ledger entry"""
        # Arrange
        customer = make_customer()

        # Act
        result = savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.POKOK, 50000), context
        )

        # Assert
        assert result.success is True
        assert result.account.balance_pokok == 50000
        assert result.account.balance_wajib == 0
        assert result.account.balance_sukarela == 0
        assert result.transaction.type == TransactionType.DEPOSIT
        assert result.transaction.category == SavingsCategory.POKOK
        assert result.transaction.amount == 50000
        assert result.transaction.user_id == context.user_id

        entries = db.query(SavingsTransaction).filter_by(customer_id=customer.id).all()
        assert len(entries) == 1

    def test_withdrawal_over_balance_is_rejected(
        self, db, savings_service, context, make_customer
    ):
        """Sukarela 10000, withdraw 15000: rejected, nothing written"""
        # Arrange
        customer = make_customer()
        savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.SUKARELA, 10000), context
        )

        # Act
        with pytest.raises(InsufficientFundsError) as exc_info:
            savings_service.process_transaction(
                customer.id, withdraw(SavingsCategory.SUKARELA, 15000), context
            )

        # Assert
        assert exc_info.value.category == "sukarela"
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["available"] == 10000
        account = savings_service.get_account(customer.id)
        assert account.balance_sukarela == 10000
        assert db.query(SavingsTransaction).filter_by(customer_id=customer.id).count() == 1

    def test_withdrawal_within_balance(self, savings_service, context, make_customer):
        customer = make_customer()
        savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.SUKARELA, 20000), context
        )

        result = savings_service.process_transaction(
            customer.id, withdraw(SavingsCategory.SUKARELA, 20000), context
        )

        assert result.account.balance_sukarela == 0
        assert "Withdrawal" in result.message

    def test_categories_are_independent(self, savings_service, context, make_customer):
        """Wajib money cannot cover a sukarela withdrawal"""
        customer = make_customer()
        savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.WAJIB, 30000), context
        )

        with pytest.raises(InsufficientFundsError):
            savings_service.process_transaction(
                customer.id, withdraw(SavingsCategory.SUKARELA, 1000), context
            )

    def test_unknown_customer(self, db, savings_service, context):
        with pytest.raises(NotFoundError):
            savings_service.process_transaction(
                999, deposit(SavingsCategory.SUKARELA, 1000), context
            )
        assert db.query(SavingsAccount).count() == 0

    def test_withdrawal_without_account_is_rejected(
        self, db, savings_service, context, make_customer
    ):
        """The lazily created account is rolled back with the failed withdrawal"""
        customer = make_customer()

        with pytest.raises(InsufficientFundsError):
            savings_service.process_transaction(
                customer.id, withdraw(SavingsCategory.POKOK, 1000), context
            )

        assert savings_service.get_account(customer.id) is None
        assert db.query(SavingsTransaction).count() == 0

    def test_ledger_matches_balances(self, savings_service, context, make_customer):
        customer = make_customer()
        steps = [
            deposit(SavingsCategory.POKOK, 50000),
            deposit(SavingsCategory.WAJIB, 10000),
            deposit(SavingsCategory.WAJIB, 10000),
            deposit(SavingsCategory.SUKARELA, 25000),
            withdraw(SavingsCategory.SUKARELA, 5000),
            withdraw(SavingsCategory.WAJIB, 10000),
        ]
        for step in steps:
            savings_service.process_transaction(customer.id, step, context)

        report = savings_service.verify_account_integrity(customer.id)

        assert report.status == "OK"
        assert report.entry_count == len(steps)
        assert report.categories["pokok"].calculated_balance == 50000
        assert report.categories["wajib"].calculated_balance == 10000
        assert report.categories["sukarela"].calculated_balance == 20000

    def test_integrity_detects_tampered_balance(
        self, db, savings_service, context, make_customer
    ):
        customer = make_customer()
        savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.SUKARELA, 10000), context
        )
        account = db.query(SavingsAccount).filter_by(customer_id=customer.id).one()
        account.balance_sukarela = 99999
        db.commit()

        report = savings_service.verify_account_integrity(customer.id)

        assert report.status == "MISMATCH"
        assert report.categories["sukarela"].recorded_balance == 99999
        assert report.categories["sukarela"].calculated_balance == 10000

    def test_integrity_without_account(self, savings_service, make_customer):
        customer = make_customer()
        assert savings_service.verify_account_integrity(customer.id).status == "NO_ACCOUNT"


class TestWajibPayment:
    """last_wajib_payment and the paid-this-month convention"""

    def test_wajib_paid_this_month_follows_calendar(
        self, db, test_settings, context, make_customer
    ):
        """Deposit in March: paid when asked in March, unpaid in April"""
        customer = make_customer()
        march = datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc)
        service = SavingsService(db, settings=test_settings, clock=fixed_clock(march))
        service.process_transaction(customer.id, deposit(SavingsCategory.WAJIB, 10000), context)

        in_march = service.get_account_status(
            customer.id, now=datetime(2026, 3, 25, 5, 0, tzinfo=timezone.utc)
        )
        in_april = service.get_account_status(
            customer.id, now=datetime(2026, 4, 2, 5, 0, tzinfo=timezone.utc)
        )

        assert in_march.is_wajib_paid_this_month is True
        assert in_april.is_wajib_paid_this_month is False

    def test_month_is_judged_in_store_timezone(
        self, db, test_settings, context, make_customer
    ):
        """31 March 18:00 UTC is already 1 April in Jakarta"""
        customer = make_customer()
        late_march_utc = datetime(2026, 3, 31, 18, 0, tzinfo=timezone.utc)
        service = SavingsService(
            db, settings=test_settings, clock=fixed_clock(late_march_utc)
        )
        service.process_transaction(customer.id, deposit(SavingsCategory.WAJIB, 10000), context)

        status = service.get_account_status(
            customer.id, now=datetime(2026, 4, 15, 5, 0, tzinfo=timezone.utc)
        )

        assert status.is_wajib_paid_this_month is True

    def test_only_wajib_deposit_stamps_payment(
        self, db, test_settings, context, make_customer
    ):
        customer = make_customer()
        service = SavingsService(
            db, settings=test_settings,
            clock=fixed_clock(datetime(2026, 5, 5, tzinfo=timezone.utc)),
        )
        service.process_transaction(customer.id, deposit(SavingsCategory.POKOK, 50000), context)
        service.process_transaction(customer.id, deposit(SavingsCategory.SUKARELA, 5000), context)
        assert service.get_account(customer.id).last_wajib_payment is None

        service.process_transaction(customer.id, deposit(SavingsCategory.WAJIB, 20000), context)
        stamped = service.get_account(customer.id).last_wajib_payment
        assert stamped is not None

        service.clock = fixed_clock(datetime(2026, 6, 5, tzinfo=timezone.utc))
        service.process_transaction(customer.id, withdraw(SavingsCategory.WAJIB, 10000), context)
        assert service.get_account(customer.id).last_wajib_payment == stamped

    def test_status_reports_pokok_and_defaults(
        self, savings_service, context, make_customer, test_settings
    ):
        customer = make_customer()

        before = savings_service.get_account_status(customer.id)
        savings_service.process_transaction(
            customer.id, deposit(SavingsCategory.POKOK, test_settings.SAVINGS_POKOK_AMOUNT), context
        )
        after = savings_service.get_account_status(customer.id)

        assert before.account_exists is False
        assert before.is_pokok_paid is False
        assert after.account_exists is True
        assert after.is_pokok_paid is True
        assert after.total_balance == test_settings.SAVINGS_POKOK_AMOUNT
        assert after.suggested_deposits == {
            "pokok": test_settings.SAVINGS_POKOK_AMOUNT,
            "wajib": test_settings.SAVINGS_WAJIB_AMOUNT,
            "sukarela": None,
        }


class TestAccountsAndHistory:
    def test_create_account_is_idempotent(self, db, savings_service, make_customer):
        customer = make_customer()

        first = savings_service.create_account(customer.id)
        second = savings_service.create_account(customer.id)

        assert first.id == second.id
        assert db.query(SavingsAccount).filter_by(customer_id=customer.id).count() == 1

    def test_get_account_none_before_first_transaction(self, savings_service, make_customer):
        assert savings_service.get_account(make_customer().id) is None

    def test_transactions_newest_first(self, savings_service, context, make_customer):
        customer = make_customer()
        for amount in (1000, 2000, 3000):
            savings_service.process_transaction(
                customer.id, deposit(SavingsCategory.SUKARELA, amount), context
            )

        history = savings_service.get_transactions(customer.id, limit=2)

        assert history.total_count == 3
        assert history.has_next is True
        assert [e.amount for e in history.entries] == [3000, 2000]
        assert history.account.balance_sukarela == 6000


class TestConcurrency:
    """Writers racing on the same account"""

    def test_stale_write_is_retried_and_both_deposits_land(
        self, db, session_factory, test_settings, context, make_customer
    ):
        customer = make_customer()
        service = SavingsService(db, settings=test_settings)
        service.process_transaction(customer.id, deposit(SavingsCategory.SUKARELA, 10000), context)

        other_session = session_factory()
        rival = SavingsService(other_session, settings=test_settings)
        read_account = service.savings_repo.get_account_model
        calls = {"n": 0}

        def racing_read(customer_id):
            account = read_account(customer_id)
            calls["n"] += 1
            if calls["n"] == 1:
                # a second register commits between our read and our write
                rival.process_transaction(
                    customer_id, deposit(SavingsCategory.SUKARELA, 5000), context
                )
            return account

        service.savings_repo.get_account_model = racing_read
        try:
            result = service.process_transaction(
                customer.id, deposit(SavingsCategory.SUKARELA, 2000), context
            )
        finally:
            other_session.close()

        assert calls["n"] == 2
        assert result.account.balance_sukarela == 17000
        assert service.verify_account_integrity(customer.id).status == "OK"

    def test_first_transaction_race_keeps_one_account(
        self, db, session_factory, test_settings, context, make_customer
    ):
        customer = make_customer()
        service = SavingsService(db, settings=test_settings)
        other_session = session_factory()
        rival = SavingsService(other_session, settings=test_settings)
        read_account = service.savings_repo.get_account_model
        calls = {"n": 0}

        def racing_read(customer_id):
            calls["n"] += 1
            if calls["n"] == 1:
                rival.process_transaction(
                    customer_id, deposit(SavingsCategory.POKOK, 50000), context
                )
                # our read happened before the rival committed
                return None
            return read_account(customer_id)

        service.savings_repo.get_account_model = racing_read
        try:
            result = service.process_transaction(
                customer.id, deposit(SavingsCategory.WAJIB, 10000), context
            )
        finally:
            other_session.close()

        assert db.query(SavingsAccount).filter_by(customer_id=customer.id).count() == 1
        assert result.account.balance_pokok == 50000
        assert result.account.balance_wajib == 10000
        assert db.query(SavingsTransaction).filter_by(customer_id=customer.id).count() == 2

    def test_gives_up_after_max_retries(
        self, db, session_factory, context, make_customer, test_settings
    ):
        settings = test_settings.model_copy(update={"TRANSACTION_MAX_RETRIES": 3})
        customer = make_customer()
        service = SavingsService(db, settings=settings)
        service.process_transaction(customer.id, deposit(SavingsCategory.SUKARELA, 1000), context)

        other_session = session_factory()
        rival = SavingsService(other_session, settings=settings)
        read_account = service.savings_repo.get_account_model
        calls = {"n": 0}

        def always_racing(customer_id):
            account = read_account(customer_id)
            calls["n"] += 1
            rival.process_transaction(
                customer_id, deposit(SavingsCategory.SUKARELA, 100), context
            )
            return account

        service.savings_repo.get_account_model = always_racing
        try:
            with pytest.raises(TransactionConflictError) as exc_info:
                service.process_transaction(
                    customer.id, deposit(SavingsCategory.SUKARELA, 5000), context
                )
        finally:
            other_session.close()

        assert calls["n"] == 3
        assert exc_info.value.status_code == 409
        service.savings_repo.get_account_model = read_account
        assert service.get_account(customer.id).balance_sukarela == 1300
