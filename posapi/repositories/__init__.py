# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .customer_repository import CustomerRepository
from .product_repository import CategoryRepository, ProductRepository
from .savings_repository import SavingsRepository
from .sale_repository import SaleRepository
from .inventory_repository import InventoryRepository, PurchaseRepository
from .debt_repository import DebtPaymentRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "CustomerRepository",
    "CategoryRepository",
    "ProductRepository",
    "SavingsRepository",
    "SaleRepository",
    "InventoryRepository",
    "PurchaseRepository",
    "DebtPaymentRepository",
]
