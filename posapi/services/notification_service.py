import httpx
from typing import Optional

from posapi.config import Settings, settings as default_settings
from posapi.schemas.sale import SaleResponse
from posapi.utils.receipt import format_rupiah
import logging

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """
    Best-effort order notifications through the Telegram Bot API.

    Nothing here raises: a failed or skipped notification is logged and
    reported as False so the order that triggered it stands.
    """

    def __init__(self, settings: Settings = default_settings):
        self.token = settings.TELEGRAM_BOT_TOKEN
        self.chat_id = settings.TELEGRAM_CHAT_ID
        self.api_base = settings.TELEGRAM_API_BASE.rstrip("/")
        self.timeout = settings.TELEGRAM_TIMEOUT_SECONDS

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    async def send_message(self, text: str, chat_id: Optional[str] = None) -> bool:
        if not self.enabled:
            logger.debug("Telegram notifications disabled; skipping message")
            return False

        url = f"{self.api_base}/bot{self.token}/sendMessage"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    json={"chat_id": chat_id or self.chat_id, "text": text},
                )
            if response.status_code != 200:
                logger.warning(
                    f"Telegram sendMessage failed: {response.status_code} {response.text}"
                )
                return False
            return True
        except httpx.TimeoutException:
            logger.warning("Telegram sendMessage timeout")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"Telegram sendMessage error: {str(e)}")
            return False

    async def notify_new_order(self, sale: SaleResponse) -> bool:
        return await self.send_message(format_order_message(sale))


def format_order_message(sale: SaleResponse) -> str:
    lines = [
        f"Pesanan baru #{sale.id} ({sale.source.value})",
        f"Pelanggan: {sale.customer_name or 'Umum'}",
    ]
    for item in sale.items:
        lines.append(f"- {item.name} x{item.quantity} = {format_rupiah(item.subtotal)}")
    lines.append(f"Total: {format_rupiah(sale.total_amount)}")
    lines.append(f"Status: {sale.payment_status.value}")
    return "\n".join(lines)
