from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from posapi.models.base import BaseModel


class Customer(BaseModel):
    """
    Shop customer / cooperative member.

    ``total_spent`` and ``debt`` are aggregates maintained inside the same
    atomic unit as the sale or payment that changes them. ``debt`` never goes
    below zero.
    """

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(50))
    address = Column(Text)
    total_spent = Column(Integer, nullable=False, default=0)
    debt = Column(Integer, nullable=False, default=0)
    last_visit = Column(DateTime(timezone=True))
    join_date = Column(Date)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
