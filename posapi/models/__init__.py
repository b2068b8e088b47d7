# Importing every model registers its table on Base.metadata

from .base import Base, BaseModel
from .user import User, UserRole, UserSession
from .product import Category, Product
from .customer import Customer
from .savings import SavingsAccount, SavingsCategory, SavingsTransaction, TransactionType
from .sale import PaymentMethod, PaymentStatus, Sale, SaleSource, SaleStatus
from .inventory import InventoryLog, InventoryLogType, Purchase
from .debt import DebtPayment

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "UserSession",
    "Category",
    "Product",
    "Customer",
    "SavingsAccount",
    "SavingsCategory",
    "SavingsTransaction",
    "TransactionType",
    "PaymentMethod",
    "PaymentStatus",
    "Sale",
    "SaleSource",
    "SaleStatus",
    "InventoryLog",
    "InventoryLogType",
    "Purchase",
    "DebtPayment",
]
