"""
Online orders (Telegram / WhatsApp).

An order is a sale that goes through the checkout unit with its channel as
``source`` and starts out unpaid. The shop is pinged on Telegram once the
order is committed.
"""

import asyncio
from datetime import datetime
from functools import partial
from typing import Callable, List

from sqlalchemy.orm import Session

from posapi.config import Settings, settings as default_settings
from posapi.core.exceptions import NotFoundError, ValidationError
from posapi.database.atomic import atomic
from posapi.core.session_context import SessionContext
from posapi.models.sale import PaymentMethod, PaymentStatus, SaleSource
from posapi.repositories.sale_repository import SaleRepository
from posapi.schemas.sale import OrderCreate, SaleResponse
from posapi.services.checkout_service import CheckoutService
from posapi.services.notification_service import TelegramNotifier
from posapi.utils.timezone_utils import now_utc
import logging

logger = logging.getLogger(__name__)

ONLINE_SOURCES = [SaleSource.TELEGRAM, SaleSource.WHATSAPP]


class OrderService:
    def __init__(
        self,
        db: Session,
        notifier: TelegramNotifier,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.notifier = notifier
        self.settings = settings
        self.sale_repo = SaleRepository(db)
        self.checkout_service = CheckoutService(db, settings=settings, clock=clock)

    async def create_order(
        self, request: OrderCreate, context: SessionContext
    ) -> SaleResponse:
        """Commit an online order, then notify the shop (best effort)"""
        source = SaleSource(request.source)
        if source not in ONLINE_SOURCES:
            raise ValidationError(
                "Orders must come from an online channel",
                details={"source": source.value},
            )

        loop = asyncio.get_event_loop()

        # the checkout unit (with its retries) blocks on the database
        sale = await loop.run_in_executor(
            None,
            partial(
                self.checkout_service.process_sale,
                items=request.items,
                payment_method=request.payment_method,
                context=context,
                customer_id=request.customer_id,
                customer_name=request.customer_name,
                source=source,
                payment_status=PaymentStatus.PENDING,
            ),
        )
        order = SaleResponse.model_validate(sale)
        logger.info(f"Order {order.id} received via {source.value}")

        delivered = await self.notifier.notify_new_order(order)
        if not delivered:
            logger.info(f"Order {order.id} notification not delivered")
        return order

    def update_order_status(
        self, sale_id: int, payment_status: PaymentStatus
    ) -> SaleResponse:
        """Mark a cash order paid or back to pending"""
        status = PaymentStatus(payment_status)

        def _unit(tx: Session):
            sale = self.sale_repo.get_model(sale_id)
            if sale is None or sale.source not in [s.value for s in ONLINE_SOURCES]:
                raise NotFoundError(f"Order {sale_id} not found", details={"sale_id": sale_id})
            if sale.payment_method == PaymentMethod.DEBT.value:
                raise ValidationError(
                    "Debt orders are settled through debt payments",
                    details={"sale_id": sale_id},
                )
            sale.payment_status = status.value
            sale.amount_paid = sale.total_amount if status == PaymentStatus.PAID else 0
            tx.flush()
            return sale

        sale = atomic(
            self.db, _unit, self.settings.TRANSACTION_MAX_RETRIES, name="order_status"
        )
        logger.info(f"Order {sale_id} marked {status.value}")
        return SaleResponse.model_validate(sale)

    def list_orders(self, limit: int = 50, offset: int = 0) -> List[SaleResponse]:
        return self.sale_repo.list_sales(sources=ONLINE_SOURCES, limit=limit, offset=offset)
