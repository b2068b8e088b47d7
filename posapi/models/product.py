from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text

from posapi.models.base import BaseModel


class Category(BaseModel):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default="#64748b")


class Product(BaseModel):
    """
    Catalog item. ``stock`` is mutated only inside atomic units (checkout,
    stock adjustment, purchase); ``version`` guards those writes.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text)
    price = Column(Integer, nullable=False, default=0)
    cost_price = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    image_url = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
