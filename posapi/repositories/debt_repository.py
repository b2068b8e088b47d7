from typing import List, Optional
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from posapi.models.debt import DebtPayment
from posapi.repositories.base import BaseRepository
from posapi.schemas.debt import DebtPaymentEntry


class DebtPaymentRepository(BaseRepository[DebtPayment, DebtPaymentEntry]):
    def __init__(self, db: Session):
        super().__init__(DebtPayment, DebtPaymentEntry, db)

    def history(
        self, customer_id: Optional[int] = None, limit: int = 100, offset: int = 0
    ) -> List[DebtPaymentEntry]:
        query = self.db.query(DebtPayment)
        if customer_id is not None:
            query = query.filter(DebtPayment.customer_id == customer_id)
        rows = (
            query.order_by(desc(DebtPayment.created_at), desc(DebtPayment.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)

    def total_paid(self) -> int:
        return int(
            self.db.query(func.coalesce(func.sum(DebtPayment.amount), 0)).scalar() or 0
        )
