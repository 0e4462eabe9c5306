"""Receipt rendering and printing through the platform print spooler."""

import logging
import shutil
import subprocess
from typing import List, Optional

from .core import Invoice, format_currency, format_unit_amount

log = logging.getLogger(__name__)

RECEIPT_WIDTH = 40


def _line(label: str, value: str, width: int = RECEIPT_WIDTH) -> str:
    gap = max(width - len(label) - len(value), 1)
    return f"{label}{' ' * gap}{value}"


def render_receipt(invoice: Invoice, currency_symbol: str = "₹", header: str = "Pharmacy Invoice") -> str:
    def cur(amount):
        return format_currency(amount, currency_symbol)

    lines: List[str] = [
        header.center(RECEIPT_WIDTH),
        invoice.created_at.strftime("%Y-%m-%d %H:%M:%S").center(RECEIPT_WIDTH),
        "-" * RECEIPT_WIDTH,
        _line("Product:", invoice.product.name),
        _line("Quantity:", str(invoice.quantity)),
        _line("Unit Price:", cur(invoice.unit_price)),
        _line("Discount per unit:", format_unit_amount(invoice.discount_per_unit, currency_symbol)),
        _line("Total Discount:", cur(invoice.discount_amount)),
        "-" * RECEIPT_WIDTH,
        _line("Total Amount:", cur(invoice.total)),
        "",
        "Thank you!".center(RECEIPT_WIDTH),
    ]
    return "\n".join(lines) + "\n"


class ReceiptPrinter:
    """Send rendered receipts to the system print spooler (`lp`)."""

    def __init__(self, printer_name: Optional[str] = None, currency_symbol: str = "₹",
                 header: str = "Pharmacy Invoice") -> None:
        self.printer_name = printer_name
        self.currency_symbol = currency_symbol
        self.header = header

    def _command(self) -> Optional[List[str]]:
        lp = shutil.which("lp")
        if lp is None:
            return None
        cmd = [lp]
        if self.printer_name:
            cmd += ["-d", self.printer_name]
        return cmd

    def print_receipt(self, invoice: Invoice) -> bool:
        """Returns True when the spooler accepted the job."""
        cmd = self._command()
        if cmd is None:
            log.warning("no print spooler found; receipt not printed")
            return False
        text = render_receipt(invoice, self.currency_symbol, self.header)
        try:
            proc = subprocess.run(cmd, input=text, text=True, capture_output=True, check=False)
        except OSError as e:
            log.error("print spooler could not be started: %s", e)
            return False
        if proc.returncode != 0:
            log.error("print spooler exited with %s: %s", proc.returncode, proc.stderr.strip())
            return False
        return True
