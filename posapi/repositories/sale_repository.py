from typing import List, Optional
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from posapi.models.sale import PaymentMethod, PaymentStatus, Sale, SaleSource, SaleStatus
from posapi.repositories.base import BaseRepository
from posapi.schemas.sale import SaleResponse


class SaleRepository(BaseRepository[Sale, SaleResponse]):
    def __init__(self, db: Session):
        super().__init__(Sale, SaleResponse, db)

    def list_sales(
        self,
        customer_id: Optional[int] = None,
        sources: Optional[List[SaleSource]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[SaleResponse]:
        query = self.db.query(Sale)
        if customer_id is not None:
            query = query.filter(Sale.customer_id == customer_id)
        if sources:
            query = query.filter(Sale.source.in_([s.value for s in sources]))
        rows = (
            query.order_by(desc(Sale.created_at), desc(Sale.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)

    def pending_debt_sales(self, customer_id: Optional[int] = None) -> List[Sale]:
        """Unsettled debt sales, oldest first (allocation order)"""
        query = self.db.query(Sale).filter(
            Sale.payment_method == PaymentMethod.DEBT.value,
            Sale.payment_status == PaymentStatus.PENDING.value,
        )
        if customer_id is not None:
            query = query.filter(Sale.customer_id == customer_id)
        return query.order_by(Sale.created_at, Sale.id).all()

    def completed_since(self, since: Optional[datetime] = None) -> List[Sale]:
        query = self.db.query(Sale).filter(Sale.status == SaleStatus.COMPLETED.value)
        if since is not None:
            query = query.filter(Sale.created_at >= since)
        return query.order_by(Sale.created_at).all()
