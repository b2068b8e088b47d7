from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import ConflictError, NotFoundError
from posapi.database.change_feed import Subscription, change_feed
from posapi.repositories.inventory_repository import InventoryRepository
from posapi.repositories.product_repository import CategoryRepository, ProductRepository
from posapi.schemas.product import (
    CategoryCreate,
    CategoryResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
import logging

logger = logging.getLogger(__name__)


class ProductService:
    """Catalog: products and categories"""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.product_repo = ProductRepository(db)
        self.category_repo = CategoryRepository(db)
        self.inventory_repo = InventoryRepository(db)

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        active_only: bool = False,
    ) -> List[ProductResponse]:
        return self.product_repo.list_products(
            search=search, category_id=category_id, active_only=active_only
        )

    def get_product(self, product_id: int) -> ProductResponse:
        product = self.product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError(
                f"Product {product_id} not found", details={"product_id": product_id}
            )
        return product

    def create_product(self, request: ProductCreate) -> ProductResponse:
        self._check_category(request.category_id)
        product = self.product_repo.create(**request.model_dump())
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: int, request: ProductUpdate) -> ProductResponse:
        changes = request.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(changes["category_id"])
        product = self.product_repo.update(product_id, **changes)
        if product is None:
            raise NotFoundError(
                f"Product {product_id} not found", details={"product_id": product_id}
            )
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return product

    def delete_product(self, product_id: int) -> None:
        """Products with stock history are deactivated, not deleted"""
        if self.inventory_repo.exists({"product_id": product_id}):
            raise ConflictError(
                "Product has stock history; deactivate it instead",
                details={"product_id": product_id},
            )
        try:
            deleted = self.product_repo.delete(product_id)
        except IntegrityError:
            # referenced by inventory logs
            raise ConflictError(
                "Product has stock history; deactivate it instead",
                details={"product_id": product_id},
            )
        if not deleted:
            raise NotFoundError(
                f"Product {product_id} not found", details={"product_id": product_id}
            )
        logger.info(f"Deleted product {product_id}")

    def list_categories(self) -> List[CategoryResponse]:
        return self.category_repo.list_categories()

    def create_category(self, request: CategoryCreate) -> CategoryResponse:
        category = self.category_repo.create(**request.model_dump())
        logger.info(f"Created category {category.id} ({category.name})")
        return category

    def update_category(self, category_id: int, request: CategoryCreate) -> CategoryResponse:
        category = self.category_repo.update(category_id, **request.model_dump())
        if category is None:
            raise NotFoundError(
                f"Category {category_id} not found", details={"category_id": category_id}
            )
        return category

    def delete_category(self, category_id: int) -> None:
        if self.product_repo.exists({"category_id": category_id}):
            raise ConflictError(
                "Category still has products", details={"category_id": category_id}
            )
        if not self.category_repo.delete(category_id):
            raise NotFoundError(
                f"Category {category_id} not found", details={"category_id": category_id}
            )

    def subscribe_products(
        self, active_only: bool = False
    ) -> Subscription[List[ProductResponse]]:
        """Live catalog view for the register"""
        return change_feed.subscribe(
            ["products", "categories"],
            lambda db: ProductRepository(db).list_products(active_only=active_only),
            session_factory=sessionmaker(bind=self.db.get_bind()),
        )

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and self.category_repo.get_by_id(category_id) is None:
            raise NotFoundError(
                f"Category {category_id} not found", details={"category_id": category_id}
            )
