import threading

import pytest

from posapi.core.exceptions import InsufficientFundsError
from posapi.database.change_feed import ChangeFeed, change_feed
from posapi.models.savings import SavingsCategory, TransactionType
from posapi.schemas.savings import SavingsTransactionRequest
from posapi.services.savings_service import SavingsService


def deposit(amount):
    return SavingsTransactionRequest(
        type=TransactionType.DEPOSIT, category=SavingsCategory.SUKARELA, amount=amount
    )


class TestChangeFeed:
    def test_publish_wakes_only_interested_subscriptions(self, session_factory):
        feed = ChangeFeed()
        products = feed.subscribe(["products"], lambda db: "p", session_factory)
        sales = feed.subscribe(["sales"], lambda db: "s", session_factory)
        products.get()
        sales.get()

        sequence = feed.publish({"products", "inventory_logs"})

        assert products.get(timeout=0.1).sequence == sequence
        assert sales.get(timeout=0.05) is None

    def test_sequence_is_monotonic_and_coalesced(self, session_factory):
        feed = ChangeFeed()
        calls = {"n": 0}

        def query(db):
            calls["n"] += 1
            return calls["n"]

        with feed.subscribe(["sales"], query, session_factory) as subscription:
            first = subscription.get()
            feed.publish({"sales"})
            feed.publish({"sales"})
            latest = feed.publish({"sales"})
            second = subscription.get(timeout=0.1)

        assert first.sequence < second.sequence == latest
        assert calls["n"] == 2

    def test_close_ends_iteration(self, session_factory):
        feed = ChangeFeed()
        subscription = feed.subscribe(["sales"], lambda db: None, session_factory)
        received = []

        def reader():
            for snapshot in subscription:
                received.append(snapshot.sequence)

        thread = threading.Thread(target=reader)
        thread.start()
        feed.publish({"sales"})
        subscription.close()
        thread.join(timeout=2)

        assert not thread.is_alive()
        assert subscription.closed is True
        assert feed.subscriber_count == 0
        assert received == sorted(received)

    def test_commit_refreshes_savings_subscription(
        self, db, test_settings, context, make_customer
    ):
        customer = make_customer()
        service = SavingsService(db, settings=test_settings)
        subscription = service.subscribe_transactions(customer.id)
        try:
            initial = subscription.get()
            service.process_transaction(customer.id, deposit(7000), context)
            updated = subscription.get(timeout=1)
        finally:
            subscription.close()

        assert initial.data == []
        assert updated.sequence > initial.sequence
        assert [entry.amount for entry in updated.data] == [7000]

    def test_rolled_back_work_is_not_published(
        self, db, test_settings, context, make_customer
    ):
        customer = make_customer()
        service = SavingsService(db, settings=test_settings)
        before = change_feed.sequence

        with pytest.raises(InsufficientFundsError):
            service.process_transaction(
                customer.id,
                SavingsTransactionRequest(
                    type=TransactionType.WITHDRAWAL,
                    category=SavingsCategory.SUKARELA,
                    amount=1000,
                ),
                context,
            )

        assert change_feed.sequence == before
