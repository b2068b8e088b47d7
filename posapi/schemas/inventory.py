from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from posapi.models.inventory import InventoryLogType


class StockAdjustmentRequest(BaseModel):
    """
    in: add quantity, out: remove quantity,
    adjustment: add a signed quantity (negative removes)
    """

    product_id: int = Field(..., gt=0)
    type: InventoryLogType
    quantity: int = Field(..., description="Units; must be positive for in/out")
    reason: str = Field("", max_length=255)


class InventoryLogEntry(BaseModel):
    id: int
    product_id: int
    product_name: str
    type: InventoryLogType
    quantity: int
    reason: str = ""
    user_id: Optional[int] = None
    sale_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAdjustmentResponse(BaseModel):
    product_id: int
    stock: int
    log: InventoryLogEntry


class PurchaseItemRequest(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    cost_price: int = Field(..., ge=0)


class PurchaseRequest(BaseModel):
    supplier: str = Field(..., max_length=200)
    items: List[PurchaseItemRequest]
    shipping_cost: int = Field(0, ge=0)


class PurchaseItem(BaseModel):
    product_id: int
    name: str
    quantity: int
    cost_price: int
    total: int


class PurchaseResponse(BaseModel):
    id: int
    supplier: str
    items: List[PurchaseItem]
    subtotal: int
    shipping_cost: int
    total_amount: int
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
