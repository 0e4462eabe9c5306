from typing import Optional

# Every failure the billing and inventory code can report.


class PharmacyError(Exception):
    pass


class NetworkFailure(PharmacyError):
    """Request to the remote store was rejected or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(NetworkFailure):
    pass


class MalformedRowError(PharmacyError):
    pass


class InvalidProductError(PharmacyError):
    pass


class InvalidQuantityError(PharmacyError):
    pass


class ProductNotFoundError(PharmacyError):
    def __init__(self, product_id):
        super().__init__(f"product not found: {product_id}")
        self.product_id = product_id


class InsufficientStockError(PharmacyError):
    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Not enough stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available
