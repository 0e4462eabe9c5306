"""Discount and total arithmetic for a single-product sale."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Sequence, Tuple

from .core import Invoice, Product, money
from .errors import InsufficientStockError, InvalidQuantityError, ProductNotFoundError


@dataclass(frozen=True)
class SaleFigures:
    discount_per_unit: Decimal
    discount_amount: Decimal
    total: Decimal


def compute_sale(product: Product, quantity: int) -> SaleFigures:
    """Price `quantity` units of `product`.

    Raises InvalidQuantityError for a non-positive quantity and
    InsufficientStockError when the product does not have that many units.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(f"quantity must be a whole number > 0, got {quantity!r}")
    if quantity > product.stock:
        raise InsufficientStockError(product.id, quantity, product.stock)

    per_unit = product.discount_per_unit
    discount_amount = money(per_unit * quantity)
    total = money(product.price * quantity) - discount_amount
    return SaleFigures(discount_per_unit=per_unit, discount_amount=discount_amount, total=total)


def sell(products: Sequence[Product], product_id: int, quantity: int) -> Tuple[List[Product], Invoice]:
    """Return the product list after the sale and the invoice for it.

    The input sequence is never modified; on error no new list is produced.
    """
    product = next((p for p in products if p.id == product_id), None)
    if product is None:
        raise ProductNotFoundError(product_id)

    figures = compute_sale(product, quantity)
    updated = [
        p.model_copy(update={"stock": p.stock - quantity}) if p is product else p
        for p in products
    ]
    invoice = Invoice(
        product=product,
        quantity=quantity,
        discount_amount=figures.discount_amount,
        total=figures.total,
    )
    return updated, invoice
