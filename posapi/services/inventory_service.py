from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

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
from posapi.database.change_feed import Subscription, change_feed
from posapi.models.inventory import InventoryLogType
from posapi.repositories.inventory_repository import (
    InventoryRepository,
    PurchaseRepository,
)
from posapi.repositories.product_repository import ProductRepository
from posapi.schemas.inventory import (
    InventoryLogEntry,
    PurchaseRequest,
    PurchaseResponse,
    StockAdjustmentRequest,
    StockAdjustmentResponse,
)
import logging

logger = logging.getLogger(__name__)


class InventoryService:
    """Stock adjustments, supplier purchases and the movement log"""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.product_repo = ProductRepository(db)
        self.inventory_repo = InventoryRepository(db)
        self.purchase_repo = PurchaseRepository(db)

    def add_stock_adjustment(
        self, request: StockAdjustmentRequest, context: SessionContext
    ) -> StockAdjustmentResponse:
        """Move stock for one product and log it

        in adds ``quantity``, out removes it, adjustment adds a signed quantity.
        """
        log_type = InventoryLogType(request.type)
        if log_type in (InventoryLogType.IN, InventoryLogType.OUT) and request.quantity <= 0:
            raise ValidationError(
                "Quantity must be positive", details={"quantity": request.quantity}
            )
        if log_type == InventoryLogType.ADJUSTMENT and request.quantity == 0:
            raise ValidationError("Adjustment quantity cannot be zero")

        delta = -request.quantity if log_type == InventoryLogType.OUT else request.quantity

        def _unit(tx: Session):
            product = self.product_repo.get_model(request.product_id)
            if product is None:
                raise NotFoundError(
                    f"Product {request.product_id} not found",
                    details={"product_id": request.product_id},
                )
            new_stock = (product.stock or 0) + delta
            if new_stock < 0:
                raise InsufficientStockError(
                    product_id=product.id,
                    product_name=product.name,
                    requested=abs(delta),
                    available=product.stock or 0,
                )
            product.stock = new_stock
            log = self.inventory_repo.add_log(
                product=product,
                type=log_type,
                quantity=request.quantity,
                reason=request.reason,
                user_id=context.user_id,
            )
            return product, log

        try:
            product, log = atomic(
                self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES,
                name="inventory.adjust",
            )
        except BaseAPIException as e:
            logger.warning(f"Stock adjustment rejected for product {request.product_id}: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Stock adjustment failed for product {request.product_id}: {str(e)}")
            raise InternalServerError("Failed to adjust stock")

        logger.info(
            f"Stock {log_type.value} {request.quantity} for product {product.id}; "
            f"now {product.stock}"
        )
        return StockAdjustmentResponse(
            product_id=product.id,
            stock=product.stock,
            log=InventoryLogEntry.model_validate(log),
        )

    def record_purchase(
        self, request: PurchaseRequest, context: SessionContext
    ) -> PurchaseResponse:
        """Receive goods from a supplier: stock in, new cost price, one purchase row"""
        supplier = (request.supplier or "").strip()
        if not supplier:
            raise ValidationError("Supplier is required")
        if not request.items:
            raise ValidationError("Purchase has no items")

        def _unit(tx: Session):
            lines = []
            for item in request.items:
                product = self.product_repo.get_model(item.product_id)
                if product is None:
                    raise NotFoundError(
                        f"Product {item.product_id} not found",
                        details={"product_id": item.product_id},
                    )
                product.stock = (product.stock or 0) + item.quantity
                product.cost_price = item.cost_price
                self.inventory_repo.add_log(
                    product=product,
                    type=InventoryLogType.IN,
                    quantity=item.quantity,
                    reason=f"Pembelian dari {supplier}",
                    user_id=context.user_id,
                )
                lines.append(
                    {
                        "product_id": product.id,
                        "name": product.name,
                        "quantity": item.quantity,
                        "cost_price": item.cost_price,
                        "total": item.quantity * item.cost_price,
                    }
                )

            subtotal = sum(line["total"] for line in lines)
            return self.purchase_repo.add(
                supplier=supplier,
                items=lines,
                subtotal=subtotal,
                shipping_cost=request.shipping_cost,
                total_amount=subtotal + request.shipping_cost,
                user_id=context.user_id,
            )

        try:
            purchase = atomic(
                self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES,
                name="inventory.purchase",
            )
        except BaseAPIException as e:
            logger.warning(f"Purchase from {supplier} rejected: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Purchase from {supplier} failed: {str(e)}")
            raise InternalServerError("Failed to record purchase")

        logger.info(
            f"Purchase {purchase.id} from {supplier}: {len(request.items)} items, "
            f"total {purchase.total_amount}"
        )
        return PurchaseResponse.model_validate(purchase)

    def get_inventory_logs(
        self, product_id: Optional[int] = None, limit: int = 100, offset: int = 0
    ) -> List[InventoryLogEntry]:
        """Stock movements, newest first"""
        return self.inventory_repo.list_logs(product_id, limit=limit, offset=offset)

    def list_purchases(self, limit: int = 50, offset: int = 0) -> List[PurchaseResponse]:
        return self.purchase_repo.list_purchases(limit=limit, offset=offset)

    def subscribe_logs(self, limit: int = 100) -> Subscription[List[InventoryLogEntry]]:
        """Live view of the newest stock movements"""
        return change_feed.subscribe(
            ["inventory_logs"],
            lambda db: InventoryRepository(db).list_logs(limit=limit),
            session_factory=sessionmaker(bind=self.db.get_bind()),
        )
