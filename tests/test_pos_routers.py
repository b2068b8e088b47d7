import pytest

from posapi.core.session_context import SessionContext


@pytest.fixture
def cashier_client(client, login_as, context):
    login_as(context)
    return client


class TestSavingsRouter:
    """Savings endpoints"""

    def test_deposit_then_read(self, cashier_client, make_customer):
        customer = make_customer()

        deposit = cashier_client.post(
            f"/api/v1/savings/{customer.id}/transactions",
            json={"type": "deposit", "category": "pokok", "amount": 50000},
        )
        account = cashier_client.get(f"/api/v1/savings/{customer.id}")
        ledger = cashier_client.get(f"/api/v1/savings/{customer.id}/transactions")
        status = cashier_client.get(f"/api/v1/savings/{customer.id}/status")

        assert deposit.status_code == 200
        assert deposit.json()["account"]["balance_pokok"] == 50000
        assert account.json()["balance_pokok"] == 50000
        assert ledger.json()["total_count"] == 1
        assert ledger.json()["entries"][0]["category"] == "pokok"
        assert status.json()["is_pokok_paid"] is True

    def test_overdraw_is_400(self, cashier_client, make_customer):
        customer = make_customer()
        cashier_client.post(
            f"/api/v1/savings/{customer.id}/transactions",
            json={"type": "deposit", "category": "sukarela", "amount": 10000},
        )

        response = cashier_client.post(
            f"/api/v1/savings/{customer.id}/transactions",
            json={"type": "withdrawal", "category": "sukarela", "amount": 15000},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "BALANCE_001"
        assert body["error"]["details"]["category"] == "sukarela"
        account = cashier_client.get(f"/api/v1/savings/{customer.id}").json()
        assert account["balance_sukarela"] == 10000

    def test_account_404_before_first_transaction(self, cashier_client, make_customer):
        customer = make_customer()

        response = cashier_client.get(f"/api/v1/savings/{customer.id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND_001"

    def test_non_positive_amount_is_422(self, cashier_client, make_customer):
        customer = make_customer()

        response = cashier_client.post(
            f"/api/v1/savings/{customer.id}/transactions",
            json={"type": "deposit", "category": "wajib", "amount": 0},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

    def test_requires_login(self, client, make_customer):
        customer = make_customer()

        response = client.post(
            f"/api/v1/savings/{customer.id}/transactions",
            json={"type": "deposit", "category": "pokok", "amount": 50000},
        )

        assert response.status_code == 401


class TestCheckoutRouter:
    def test_cash_checkout(self, cashier_client, make_product):
        product = make_product(price=5000, stock=10)

        response = cashier_client.post(
            "/api/v1/checkout",
            json={"items": [{"product_id": product.id, "quantity": 2}], "payment_method": "cash"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sale"]["total_amount"] == 10000
        assert body["sale"]["payment_status"] == "paid"
        assert "Rp 10.000" in body["text"]

        receipt = cashier_client.get(f"/api/v1/sales/{body['sale']['id']}/receipt")
        assert receipt.status_code == 200
        assert receipt.json()["sale"]["id"] == body["sale"]["id"]

    def test_debt_without_customer_is_422(self, cashier_client, make_product):
        product = make_product()

        response = cashier_client.post(
            "/api/v1/checkout",
            json={"items": [{"product_id": product.id, "quantity": 1}], "payment_method": "debt"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"
        assert cashier_client.get("/api/v1/sales").json() == []

    def test_oversell_is_400(self, cashier_client, make_product):
        product = make_product(stock=1)

        response = cashier_client.post(
            "/api/v1/checkout",
            json={"items": [{"product_id": product.id, "quantity": 5}]},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "STOCK_001"


class TestDebtRouter:
    def test_pay_down_debt(self, cashier_client, make_product, make_customer):
        product = make_product(price=5000)
        customer = make_customer(name="Siti")
        cashier_client.post(
            "/api/v1/checkout",
            json={
                "items": [{"product_id": product.id, "quantity": 2}],
                "payment_method": "debt",
                "customer_id": customer.id,
            },
        )

        paid = cashier_client.post(
            f"/api/v1/debts/customers/{customer.id}/payments", json={"amount": 4000}
        )
        summary = cashier_client.get(f"/api/v1/debts/customers/{customer.id}")
        too_much = cashier_client.post(
            f"/api/v1/debts/customers/{customer.id}/payments", json={"amount": 999999}
        )

        assert paid.status_code == 200
        assert paid.json()["remaining_debt"] == 6000
        assert summary.json()["debt"] == 6000
        assert too_much.status_code == 422


class TestCatalogRouters:
    def test_create_and_search_customer(self, cashier_client):
        created = cashier_client.post("/api/v1/customers", json={"name": "Budi Santoso"})
        found = cashier_client.get("/api/v1/customers/search", params={"q": "budi"})

        assert created.status_code == 201
        assert created.json()["member_id"] == "M-0001"
        assert [c["name"] for c in found.json()] == ["Budi Santoso"]

    def test_cashier_cannot_delete_customer(self, cashier_client, make_customer):
        customer = make_customer()

        response = cashier_client.delete(f"/api/v1/customers/{customer.id}")

        assert response.status_code == 403

    def test_admin_deletes_customer(self, client, login_as, admin, make_customer):
        login_as(SessionContext(user_id=admin.id, name=admin.name, role="admin"))
        customer = make_customer()

        response = client.delete(f"/api/v1/customers/{customer.id}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/customers/{customer.id}").status_code == 404

    def test_stock_adjustment(self, cashier_client, make_product):
        product = make_product(stock=3)

        response = cashier_client.post(
            "/api/v1/inventory/adjustments",
            json={"product_id": product.id, "type": "in", "quantity": 7, "reason": "Retur"},
        )

        assert response.status_code == 200
        assert response.json()["stock"] == 10
