from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from posapi.models.customer import Customer
from posapi.repositories.base import BaseRepository
from posapi.schemas.customer import CustomerResponse

MEMBER_ID_PREFIX = "M-"
MEMBER_ID_DIGITS = 4


class CustomerRepository(BaseRepository[Customer, CustomerResponse]):
    def __init__(self, db: Session):
        super().__init__(Customer, CustomerResponse, db)

    def list_customers(
        self, limit: Optional[int] = None, offset: int = 0
    ) -> List[CustomerResponse]:
        query = self.db.query(Customer).order_by(Customer.name, Customer.id)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self._to_schemas(query.all())

    def search(self, term: str, limit: int = 50) -> List[CustomerResponse]:
        pattern = f"%{term.strip()}%"
        rows = (
            self.db.query(Customer)
            .filter(or_(Customer.name.ilike(pattern), Customer.member_id.ilike(pattern)))
            .order_by(Customer.name)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)

    def get_by_member_id(self, member_id: str) -> Optional[CustomerResponse]:
        return self.get_by_field("member_id", member_id)

    def next_member_id(self) -> str:
        """M-0001, M-0002, ... based on the highest customer id so far"""
        highest = self.db.query(func.max(Customer.id)).scalar() or 0
        return f"{MEMBER_ID_PREFIX}{highest + 1:0{MEMBER_ID_DIGITS}d}"

    def total_debt(self) -> int:
        return int(self.db.query(func.coalesce(func.sum(Customer.debt), 0)).scalar() or 0)
