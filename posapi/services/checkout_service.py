"""
Checkout: one cart becomes one sale.

The sale record, the stock decrement and inventory log for every line, and the
customer aggregates (total spent, last visit, debt) are written in a single
atomic unit. Either all of it lands or none of it does.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import (
    BaseAPIException,
    InsufficientStockError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from posapi.core.session_context import SessionContext
from posapi.database.atomic import atomic
from posapi.models.customer import Customer
from posapi.models.inventory import InventoryLogType
from posapi.models.product import Product
from posapi.models.sale import PaymentMethod, PaymentStatus, Sale, SaleSource, SaleStatus
from posapi.repositories.customer_repository import CustomerRepository
from posapi.repositories.inventory_repository import InventoryRepository
from posapi.repositories.product_repository import ProductRepository
from posapi.repositories.sale_repository import SaleRepository
from posapi.schemas.sale import CartItemRequest, CheckoutRequest, Receipt, SaleResponse
from posapi.utils.receipt import render_sale_receipt
from posapi.utils.timezone_utils import now_utc
import logging

logger = logging.getLogger(__name__)

SALE_REASON = "Sale Transaction"


class CheckoutService:
    """Point-of-sale checkout"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.product_repo = ProductRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.sale_repo = SaleRepository(db)
        self.inventory_repo = InventoryRepository(db)

    def checkout(self, request: CheckoutRequest, context: SessionContext) -> Receipt:
        """Commit a sale from the register

        Raises:
            ValidationError: empty cart, bad quantity, debt without customer
            NotFoundError: unknown product or customer
            InsufficientStockError: a line exceeds stock (when enforced)
            TransactionConflictError: lost to concurrent writers on every attempt
        """
        sale = self.process_sale(
            items=request.items,
            payment_method=request.payment_method,
            context=context,
            customer_id=request.customer_id,
            customer_name=request.customer_name,
        )
        return self.build_receipt(sale, context)

    def process_sale(
        self,
        items: List[CartItemRequest],
        payment_method: PaymentMethod,
        context: SessionContext,
        customer_id: Optional[int] = None,
        customer_name: Optional[str] = None,
        source: SaleSource = SaleSource.POS,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Sale:
        """
        The checkout unit itself. Online orders reuse it with their own source
        and an explicit payment status.
        """
        payment_method = PaymentMethod(payment_method)
        self._validate_cart(items, payment_method, customer_id)

        if payment_status is None:
            payment_status = (
                PaymentStatus.PAID if payment_method == PaymentMethod.CASH
                else PaymentStatus.PENDING
            )

        def _unit(tx: Session) -> Sale:
            now = self.clock()
            products = self._load_products(items)

            customer: Optional[Customer] = None
            if customer_id is not None:
                customer = self.customer_repo.get_model(customer_id)
                if customer is None:
                    raise NotFoundError(
                        f"Customer {customer_id} not found",
                        details={"customer_id": customer_id},
                    )

            quantities = self._merged_quantities(items)
            if self.settings.ENFORCE_STOCK_ON_CHECKOUT:
                for product_id, quantity in quantities.items():
                    product = products[product_id]
                    if product.stock < quantity:
                        raise InsufficientStockError(
                            product_id=product.id,
                            product_name=product.name,
                            requested=quantity,
                            available=product.stock,
                        )

            lines = [
                {
                    "product_id": products[item.product_id].id,
                    "name": products[item.product_id].name,
                    "price": products[item.product_id].price,
                    "cost_price": products[item.product_id].cost_price,
                    "quantity": item.quantity,
                }
                for item in items
            ]
            total = sum(line["price"] * line["quantity"] for line in lines)

            sale = self.sale_repo.add(
                items=lines,
                total_amount=total,
                discount=0,
                payment_method=payment_method.value,
                payment_status=payment_status.value,
                amount_paid=total if payment_status == PaymentStatus.PAID else 0,
                customer_id=customer.id if customer else None,
                customer_name=customer.name if customer else customer_name,
                cashier_id=context.user_id,
                status=SaleStatus.COMPLETED.value,
                source=source.value,
            )

            for item in items:
                product = products[item.product_id]
                product.stock = product.stock - item.quantity
                self.inventory_repo.add_log(
                    product=product,
                    type=InventoryLogType.OUT,
                    quantity=item.quantity,
                    reason=SALE_REASON,
                    user_id=context.user_id,
                    sale_id=sale.id,
                )

            if customer is not None:
                customer.total_spent = (customer.total_spent or 0) + total
                customer.last_visit = now
                if payment_method == PaymentMethod.DEBT:
                    customer.debt = (customer.debt or 0) + total

            tx.flush()
            return sale

        try:
            sale = atomic(
                self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES,
                name="checkout",
            )
        except BaseAPIException as e:
            logger.warning(f"Checkout rejected: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Checkout failed: {str(e)}")
            raise InternalServerError("Failed to complete checkout")

        logger.info(
            f"Sale {sale.id} committed: {sale.total_amount} via {sale.payment_method} "
            f"({len(items)} lines, source={sale.source}, cashier={context.user_id})"
        )
        return sale

    def build_receipt(self, sale: Sale, context: Optional[SessionContext] = None) -> Receipt:
        sale_response = SaleResponse.model_validate(sale)
        cashier_name = context.name if context else None
        text = render_sale_receipt(
            items=sale.items,
            total_amount=sale.total_amount,
            payment_method=sale.payment_method,
            created_at=sale_response.created_at or self.clock(),
            cashier_name=cashier_name,
            customer_name=sale.customer_name,
            sale_id=sale.id,
        )
        return Receipt(sale=sale_response, cashier_name=cashier_name, text=text)

    def get_receipt(self, sale_id: int, context: Optional[SessionContext] = None) -> Receipt:
        """Receipt of a past sale, for reprints"""
        sale = self.sale_repo.get_model(sale_id)
        if sale is None:
            raise NotFoundError(f"Sale {sale_id} not found", details={"sale_id": sale_id})
        return self.build_receipt(sale, context)

    def list_sales(
        self, customer_id: Optional[int] = None, limit: int = 50, offset: int = 0
    ) -> List[SaleResponse]:
        return self.sale_repo.list_sales(customer_id=customer_id, limit=limit, offset=offset)

    def _validate_cart(
        self,
        items: List[CartItemRequest],
        payment_method: PaymentMethod,
        customer_id: Optional[int],
    ) -> None:
        if not items:
            raise ValidationError("Cart is empty")
        for item in items:
            if item.quantity <= 0:
                raise ValidationError(
                    "Quantity must be positive",
                    details={"product_id": item.product_id, "quantity": item.quantity},
                )
        if payment_method == PaymentMethod.DEBT and customer_id is None:
            raise ValidationError("Debt sales require a customer")

    def _load_products(self, items: List[CartItemRequest]) -> Dict[int, Product]:
        wanted = {item.product_id for item in items}
        products = {p.id: p for p in self.product_repo.get_models(list(wanted))}
        missing = sorted(wanted - set(products))
        if missing:
            raise NotFoundError(
                f"Product {missing[0]} not found", details={"product_ids": missing}
            )
        return products

    @staticmethod
    def _merged_quantities(items: List[CartItemRequest]) -> "OrderedDict[int, int]":
        """Total quantity per product, in first-seen cart order"""
        merged: "OrderedDict[int, int]" = OrderedDict()
        for item in items:
            merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
        return merged
