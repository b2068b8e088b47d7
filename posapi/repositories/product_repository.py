from typing import List, Optional
from sqlalchemy.orm import Session

from posapi.models.product import Category, Product
from posapi.repositories.base import BaseRepository
from posapi.schemas.product import CategoryResponse, ProductResponse


class ProductRepository(BaseRepository[Product, ProductResponse]):
    def __init__(self, db: Session):
        super().__init__(Product, ProductResponse, db)

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        active_only: bool = False,
    ) -> List[ProductResponse]:
        query = self.db.query(Product)
        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        return self._to_schemas(query.order_by(Product.name).all())

    def get_models(self, product_ids: List[int]) -> List[Product]:
        if not product_ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(product_ids)).all()

    def low_stock(self, threshold: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.stock <= threshold)
            .order_by(Product.stock, Product.name)
            .all()
        )


class CategoryRepository(BaseRepository[Category, CategoryResponse]):
    def __init__(self, db: Session):
        super().__init__(Category, CategoryResponse, db)

    def list_categories(self) -> List[CategoryResponse]:
        return self._to_schemas(self.db.query(Category).order_by(Category.name).all())
