from sqlalchemy import Column, ForeignKey, Integer, String, Text

from posapi.models.base import BaseModel


class DebtPayment(BaseModel):
    """
    Payment history (immutable). ``sale_id`` is set when the payment settles
    a specific sale; aggregate payments leave it empty.
    ``remaining_debt`` is the customer's debt right after this payment.
    """

    __tablename__ = "debt_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = Column(String(200))
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=True)
    amount = Column(Integer, nullable=False)
    remaining_debt = Column(Integer, nullable=False)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    note = Column(Text)
