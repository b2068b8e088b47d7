from .auth import Token, LoginRequest, UserCreate, UserResponse
from .customer import CustomerCreate, CustomerResponse
from .product import ProductCreate, ProductResponse
from .sale import CheckoutRequest, Receipt, SaleResponse
from .savings import SavingsTransactionRequest, SavingsAccountResponse
