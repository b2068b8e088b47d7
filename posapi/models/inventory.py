import enum

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, Text

from posapi.models.base import BaseModel


class InventoryLogType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class InventoryLog(BaseModel):
    """Stock movement record, one per product per operation."""

    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False, default="")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=True)


class Purchase(BaseModel):
    """Stock purchase from a supplier."""

    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    supplier = Column(String(200), nullable=False)
    items = Column(JSON, nullable=False)
    subtotal = Column(Integer, nullable=False)
    shipping_cost = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
