import pytest

from posapi.core.exceptions import ConflictError, NotFoundError
from posapi.models.inventory import InventoryLogType
from posapi.schemas.inventory import StockAdjustmentRequest
from posapi.schemas.product import CategoryCreate, ProductCreate, ProductUpdate
from posapi.schemas.sale import CartItemRequest, CheckoutRequest
from posapi.services.checkout_service import CheckoutService
from posapi.services.inventory_service import InventoryService
from posapi.services.product_service import ProductService


@pytest.fixture
def product_service(db, test_settings):
    return ProductService(db, settings=test_settings)


class TestProducts:
    def test_create_and_update(self, product_service, category):
        product = product_service.create_product(
            ProductCreate(name="Teh Botol", price=5000, cost_price=3500, category_id=category.id)
        )

        updated = product_service.update_product(product.id, ProductUpdate(price=5500))

        assert updated.price == 5500
        assert updated.cost_price == 3500
        assert updated.category_id == category.id

    def test_unknown_category(self, product_service):
        with pytest.raises(NotFoundError):
            product_service.create_product(ProductCreate(name="Roti", price=3000, category_id=99))

    def test_delete_without_history(self, product_service):
        product = product_service.create_product(ProductCreate(name="Roti", price=3000))

        product_service.delete_product(product.id)

        with pytest.raises(NotFoundError):
            product_service.get_product(product.id)

    def test_sold_product_cannot_be_deleted(
        self, db, product_service, test_settings, context, make_product
    ):
        product = make_product(stock=5)
        CheckoutService(db, settings=test_settings).checkout(
            CheckoutRequest(items=[CartItemRequest(product_id=product.id, quantity=1)]),
            context,
        )

        with pytest.raises(ConflictError):
            product_service.delete_product(product.id)

        assert product_service.get_product(product.id).stock == 4

    def test_adjusted_product_cannot_be_deleted(
        self, db, product_service, test_settings, context, make_product
    ):
        product = make_product(stock=5)
        InventoryService(db, settings=test_settings).add_stock_adjustment(
            StockAdjustmentRequest(
                product_id=product.id, type=InventoryLogType.IN, quantity=3, reason="Retur"
            ),
            context,
        )

        with pytest.raises(ConflictError):
            product_service.delete_product(product.id)

    def test_delete_unknown(self, product_service):
        with pytest.raises(NotFoundError):
            product_service.delete_product(404)


class TestCategories:
    def test_category_with_products_cannot_be_deleted(
        self, product_service, category, make_product
    ):
        make_product(category=category)

        with pytest.raises(ConflictError):
            product_service.delete_category(category.id)

    def test_delete_empty_category(self, product_service):
        category = product_service.create_category(CategoryCreate(name="Snack"))

        product_service.delete_category(category.id)

        assert product_service.list_categories() == []
