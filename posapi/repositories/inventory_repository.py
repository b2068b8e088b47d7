from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session

from posapi.models.inventory import InventoryLog, InventoryLogType, Purchase
from posapi.models.product import Product
from posapi.repositories.base import BaseRepository
from posapi.schemas.inventory import InventoryLogEntry, PurchaseResponse


class InventoryRepository(BaseRepository[InventoryLog, InventoryLogEntry]):
    def __init__(self, db: Session):
        super().__init__(InventoryLog, InventoryLogEntry, db)

    def add_log(
        self,
        product: Product,
        type: InventoryLogType,
        quantity: int,
        reason: str,
        user_id: Optional[int] = None,
        sale_id: Optional[int] = None,
    ) -> InventoryLog:
        return self.add(
            product_id=product.id,
            product_name=product.name,
            type=type.value,
            quantity=quantity,
            reason=reason,
            user_id=user_id,
            sale_id=sale_id,
        )

    def list_logs(
        self, product_id: Optional[int] = None, limit: int = 100, offset: int = 0
    ) -> List[InventoryLogEntry]:
        query = self.db.query(InventoryLog)
        if product_id is not None:
            query = query.filter(InventoryLog.product_id == product_id)
        rows = (
            query.order_by(desc(InventoryLog.created_at), desc(InventoryLog.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)


class PurchaseRepository(BaseRepository[Purchase, PurchaseResponse]):
    def __init__(self, db: Session):
        super().__init__(Purchase, PurchaseResponse, db)

    def list_purchases(self, limit: int = 50, offset: int = 0) -> List[PurchaseResponse]:
        rows = (
            self.db.query(Purchase)
            .order_by(desc(Purchase.created_at), desc(Purchase.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)
