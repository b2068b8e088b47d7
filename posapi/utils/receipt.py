"""
Plain-text receipts for 58mm thermal printers (32 characters per line).

The text carries no printer control codes; the register wraps it in whatever
ESC/POS commands its printer needs.
"""

from datetime import datetime
from typing import Iterable, Optional

from posapi.config import settings
from posapi.utils.timezone_utils import to_local

WIDTH = 32
DIVIDER = "-" * WIDTH


def format_number(amount: int) -> str:
    """1234567 -> '1.234.567' (Indonesian grouping)"""
    sign = "-" if amount < 0 else ""
    return sign + f"{abs(int(amount)):,}".replace(",", ".")


def format_rupiah(amount: int) -> str:
    return f"Rp {format_number(amount)}"


def _header(lines: list) -> None:
    lines.append(settings.STORE_NAME.center(WIDTH).rstrip())
    lines.append(settings.STORE_ADDRESS.center(WIDTH).rstrip())
    lines.append(f"Telp: {settings.STORE_PHONE}".center(WIDTH).rstrip())
    lines.append(DIVIDER)


def _timestamp(when: datetime) -> str:
    return to_local(when).strftime("%d/%m/%Y %H:%M:%S")


def render_sale_receipt(
    items: Iterable[dict],
    total_amount: int,
    payment_method: str,
    created_at: datetime,
    cashier_name: Optional[str] = None,
    customer_name: Optional[str] = None,
    sale_id: Optional[int] = None,
) -> str:
    lines: list = []
    _header(lines)
    if sale_id is not None:
        lines.append(f"No: {sale_id}")
    lines.append(f"Tgl: {_timestamp(created_at)}")
    lines.append(f"Kasir: {cashier_name or 'Admin'}")
    lines.append(f"Pelanggan: {customer_name or 'Umum'}")
    lines.append(f"Metode: {'HUTANG' if payment_method == 'debt' else 'CASH'}")
    lines.append(DIVIDER)

    for item in items:
        lines.append(str(item["name"])[:WIDTH])
        qty_price = f"{item['quantity']} x {format_number(item['price'])}"
        line_total = format_number(item["quantity"] * item["price"])
        lines.append(f"{qty_price.ljust(20)} {line_total.rjust(10)}"[:WIDTH])

    lines.append(DIVIDER)
    lines.append("TOTAL:".ljust(15) + format_rupiah(total_amount).rjust(17))

    if payment_method == "debt":
        lines.append("")
        lines.append("*** BELUM LUNAS ***".center(WIDTH).rstrip())

    lines.append("")
    lines.append("Terima Kasih".center(WIDTH).rstrip())
    return "\n".join(lines) + "\n"


def render_debt_payment_receipt(
    customer_name: str,
    amount: int,
    remaining_debt: int,
    created_at: datetime,
    cashier_name: Optional[str] = None,
) -> str:
    lines: list = []
    _header(lines)
    lines.append(f"Tgl: {_timestamp(created_at)}")
    lines.append(f"Kasir: {cashier_name or 'Admin'}")
    lines.append(f"Plg: {customer_name}"[:WIDTH])
    lines.append(DIVIDER)
    lines.append("BUKTI PEMBAYARAN HUTANG".center(WIDTH).rstrip())
    lines.append("Jumlah Bayar".ljust(14) + format_rupiah(amount).rjust(18))
    lines.append("Sisa Hutang".ljust(14) + format_rupiah(remaining_debt).rjust(18))
    lines.append(DIVIDER)
    lines.append("Terima Kasih".center(WIDTH).rstrip())
    return "\n".join(lines) + "\n"
