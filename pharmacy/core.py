from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidProductError, MalformedRowError

CENT = Decimal("0.01")
SUB_CENT = Decimal("0.0001")
HUNDRED = Decimal(100)

Number = Union[str, int, float, Decimal]

# ---------------------------
# Schemas
# ---------------------------
class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: Decimal
    discount: Decimal
    stock: int

    @property
    def discount_per_unit(self) -> Decimal:
        return self.price * self.discount / HUNDRED

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "discount": str(self.discount),
            "stock": self.stock,
        }


class ProductDraft(BaseModel):
    """Raw values typed into the add-product form."""

    name: str
    price: Number
    discount: Number
    stock: Number

    def to_product(self, product_id: int) -> Product:
        name = self.name.strip()
        if not name:
            raise InvalidProductError("name is required")
        price = _parse_decimal(self.price)
        if price is None or price < 0:
            raise InvalidProductError(f"price must be a non-negative number, got {self.price!r}")
        discount = _parse_decimal(self.discount)
        if discount is None or not (0 <= discount <= HUNDRED):
            raise InvalidProductError(f"discount must be a percentage between 0 and 100, got {self.discount!r}")
        stock = _parse_int(self.stock)
        if stock is None or stock < 0:
            raise InvalidProductError(f"stock must be a non-negative whole number, got {self.stock!r}")
        return Product(id=product_id, name=name, price=price, discount=discount, stock=stock)


class Invoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: Product
    quantity: int
    discount_amount: Decimal
    total: Decimal
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def discount_per_unit(self) -> Decimal:
        return self.product.discount_per_unit

    @property
    def gross(self) -> Decimal:
        return money(self.product.price * self.quantity)


# ---------------------------
# Helpers
# ---------------------------
def money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    return f"{symbol}{money(amount):.2f}"


def format_unit_amount(amount: Decimal, symbol: str = "₹") -> str:
    """Per-unit figure with sub-cent digits kept, so it multiplies out to the rounded totals."""
    exact = Decimal(amount).quantize(SUB_CENT, rounding=ROUND_HALF_UP).normalize()
    if exact == money(exact):
        return format_currency(exact, symbol)
    return f"{symbol}{exact:f}"


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def _parse_int(value: Any) -> Optional[int]:
    parsed = _parse_decimal(value)
    if parsed is None or parsed != parsed.to_integral_value():
        return None
    return int(parsed)


def product_from_row(row: Dict[str, Any]) -> Optional[Product]:
    """Coerce one loosely-typed store row. Returns None for blank rows."""
    if not isinstance(row, dict):
        raise MalformedRowError(f"row is not an object: {row!r}")
    name = row.get("name")
    if name is None or str(name).strip() == "":
        return None

    missing = [k for k in ("id", "price", "discount", "stock") if k not in row]
    if missing:
        raise MalformedRowError(f"row {name!r} is missing: {', '.join(missing)}")

    product_id = _parse_int(row["id"])
    price = _parse_decimal(row["price"])
    discount = _parse_decimal(row["discount"])
    stock = _parse_int(row["stock"])
    bad = [
        field for field, parsed in (("id", product_id), ("price", price), ("discount", discount), ("stock", stock))
        if parsed is None
    ]
    if bad:
        raise MalformedRowError(f"row {name!r} has unreadable {', '.join(bad)}")
    return Product(id=product_id, name=str(name).strip(), price=price, discount=discount, stock=stock)
