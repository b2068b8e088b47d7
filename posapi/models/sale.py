import enum

from sqlalchemy import JSON, Column, ForeignKey, Integer, String

from posapi.models.base import BaseModel


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    DEBT = "debt"


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"


class SaleStatus(str, enum.Enum):
    COMPLETED = "completed"
    REFUNDED = "refunded"


class SaleSource(str, enum.Enum):
    POS = "pos"
    TELEGRAM = "telegram"
    WHATSAPP = "whatsapp"


class Sale(BaseModel):
    """
    Completed sale. ``items`` is the ordered cart snapshot
    (product_id, name, price, cost_price, quantity).

    Outstanding amount is ``total_amount - amount_paid``; for debt sales this
    is the canonical receivable and ``Customer.debt`` is its running sum.
    """

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    items = Column(JSON, nullable=False)
    total_amount = Column(Integer, nullable=False)
    discount = Column(Integer, nullable=False, default=0)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False)
    amount_paid = Column(Integer, nullable=False, default=0)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = Column(String(200))
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), nullable=False, default=SaleStatus.COMPLETED.value)
    source = Column(String(20), nullable=False, default=SaleSource.POS.value)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def outstanding(self) -> int:
        return (self.total_amount or 0) - (self.amount_paid or 0)
