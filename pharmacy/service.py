"""Application state and operations for the billing counter.

`PharmacyService` owns the in-memory product list and the last-invoice slot.
The remote store is authoritative: every successful write is followed by a
full reload, and the reloaded list replaces whatever was held locally.
"""

import logging
import time
from typing import List, Optional, Sequence, Tuple

from . import billing
from .config import Settings
from .core import Invoice, Product, ProductDraft, product_from_row
from .errors import InvalidProductError, InvalidQuantityError, PharmacyError, ProductNotFoundError
from .receipt import ReceiptPrinter, render_receipt
from .results import Outcome

log = logging.getLogger(__name__)


class PharmacyService:
    def __init__(self, client, settings: Optional[Settings] = None, printer: Optional[ReceiptPrinter] = None):
        self.client = client
        self.settings = settings or Settings()
        self.printer = printer or ReceiptPrinter(
            self.settings.printer_name, self.settings.currency_symbol, self.settings.store_header
        )
        self._products: List[Product] = []
        self._last_invoice: Optional[Invoice] = None
        self._last_id = 0

    # ---------------------------
    # Read side
    # ---------------------------
    @property
    def products(self) -> Tuple[Product, ...]:
        return tuple(self._products)

    @property
    def last_invoice(self) -> Optional[Invoice]:
        return self._last_invoice

    def get_product(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def next_product_id(self, now: Optional[float] = None) -> int:
        """Millisecond timestamp id, bumped when two products are created in the same millisecond."""
        candidate = int((time.time() if now is None else now) * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    # ---------------------------
    # Inventory sync
    # ---------------------------
    def _replace_products(self, rows: Sequence[dict]) -> List[Product]:
        products = [p for p in (product_from_row(row) for row in rows) if p is not None]
        self._products = products
        log.info("loaded %d products from store", len(products))
        return products

    def reload(self) -> Outcome:
        try:
            self._replace_products(self.client.list_rows())
        except PharmacyError as e:
            log.error("Error fetching sheet data: %s", e)
            return Outcome.failure(e)
        return Outcome.success(self.products)

    async def reload_async(self) -> Outcome:
        try:
            self._replace_products(await self.client.list_rows_async())
        except PharmacyError as e:
            log.error("Error fetching sheet data: %s", e)
            return Outcome.failure(e)
        return Outcome.success(self.products)

    # ---------------------------
    # Product mutation
    # ---------------------------
    def create_product(self, name: str, price, discount, stock) -> Outcome:
        try:
            product = ProductDraft(name=name, price=price, discount=discount, stock=stock).to_product(self.next_product_id())
        except InvalidProductError as e:
            return Outcome.failure(e, f"Error adding product: {e}")
        except ValueError as e:
            # pydantic rejects values of the wrong type outright
            return Outcome.failure(InvalidProductError(str(e)), "Error adding product: invalid form values")

        try:
            self.client.create_row(product.to_row())
        except PharmacyError as e:
            log.error("Error adding product: %s", e)
            return Outcome.failure(e, "Error adding product.")

        log.info("created product %s (%s)", product.id, product.name)
        synced = self.reload()
        message = "Product added successfully!"
        if not synced.ok:
            message += f" (reload failed: {synced.message})"
        return Outcome.success(product, message)

    def delete_product(self, product_id: int) -> Outcome:
        try:
            self.client.delete_row(product_id)
        except PharmacyError as e:
            log.error("Error deleting product: %s", e)
            return Outcome.failure(e, "Error deleting product.")

        log.info("deleted product %s", product_id)
        synced = self.reload()
        message = "Product removed successfully!"
        if not synced.ok:
            message += f" (reload failed: {synced.message})"
        return Outcome.success(product_id, message)

    # ---------------------------
    # Sales
    # ---------------------------
    def sell(self, product_id, quantity) -> Outcome:
        try:
            pid = int(product_id)
        except (TypeError, ValueError, OverflowError):
            return Outcome.failure(ProductNotFoundError(product_id))
        try:
            qty = int(quantity) if isinstance(quantity, str) else quantity
        except ValueError:
            return Outcome.failure(InvalidQuantityError(f"quantity must be a whole number > 0, got {quantity!r}"))

        try:
            updated, invoice = billing.sell(self._products, pid, qty)
        except PharmacyError as e:
            log.info("sale rejected: %s", e)
            return Outcome.failure(e)

        self._products = updated
        self._last_invoice = invoice
        log.info("sold %d x %s, total %s", qty, invoice.product.name, invoice.total)

        message = ""
        if self.settings.push_stock:
            new_stock = invoice.product.stock - qty
            try:
                self.client.update_row(pid, {"stock": new_stock})
            except PharmacyError as e:
                log.error("stock write-back failed for %s: %s", pid, e)
                message = f"Sale recorded locally; stock update failed: {e}"
        return Outcome.success(invoice, message)

    # ---------------------------
    # Invoice
    # ---------------------------
    def clear_invoice(self) -> None:
        self._last_invoice = None

    def render_last_invoice(self) -> Optional[str]:
        if self._last_invoice is None:
            return None
        return render_receipt(self._last_invoice, self.settings.currency_symbol, self.settings.store_header)

    def print_last_invoice(self) -> Outcome:
        if self._last_invoice is None:
            return Outcome.failure(PharmacyError("no invoice to print"))
        if not self.printer.print_receipt(self._last_invoice):
            return Outcome.failure(PharmacyError("printing failed"))
        return Outcome.success(self._last_invoice, "Invoice sent to printer")
