from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from posapi.models.sale import PaymentMethod, PaymentStatus, SaleSource, SaleStatus


class CartItemRequest(BaseModel):
    """Cart line as sent by the register. Prices come from the catalog."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class SaleItem(BaseModel):
    """Cart line frozen on the sale record"""

    product_id: int
    name: str
    price: int
    cost_price: int
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class CheckoutRequest(BaseModel):
    items: List[CartItemRequest] = Field(..., description="Cart lines, in order")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="cash | debt")
    customer_id: Optional[int] = Field(None, description="Required for debt")
    customer_name: Optional[str] = Field(
        None, max_length=200, description="Walk-in name when no customer is attached"
    )


class SaleResponse(BaseModel):
    id: int
    items: List[SaleItem]
    total_amount: int
    discount: int = 0
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    amount_paid: int = 0
    outstanding: int = 0
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    cashier_id: Optional[int] = None
    status: SaleStatus = SaleStatus.COMPLETED
    source: SaleSource = SaleSource.POS
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Receipt(BaseModel):
    """Checkout result: the committed sale plus a printable receipt body"""

    sale: SaleResponse
    cashier_name: Optional[str] = None
    text: str = Field(..., description="32-column plain text receipt")


class OrderCreate(BaseModel):
    """Order received through a chat channel"""

    items: List[CartItemRequest]
    source: SaleSource = Field(SaleSource.TELEGRAM, description="telegram | whatsapp")
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[int] = None
    customer_name: Optional[str] = Field(None, max_length=200)


class OrderStatusUpdate(BaseModel):
    payment_status: PaymentStatus
