# kasir/errors.py
from decimal import Decimal
from typing import Any, Dict


class PosError(Exception):
    """Base class for every error the cart and checkout core reports."""

    code = "pos_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


# ---------------------------
# Validation errors
# ---------------------------
class ValidationError(PosError):
    code = "validation_error"


class NotNumeric(ValidationError):
    code = "not_numeric"

    def __init__(self, value: Any):
        super().__init__(f"quantity must be a whole number, got {value!r}")
        self.value = value


class NonPositive(ValidationError):
    code = "non_positive"

    def __init__(self, value: int):
        super().__init__("quantity must be greater than 0")
        self.value = value


class ExceedsStock(ValidationError):
    code = "exceeds_stock"

    def __init__(self, requested: int, available: int):
        super().__init__(f"quantity exceeds available stock (stock: {available})")
        self.requested = requested
        self.available = available


class ProductInvalid(ValidationError):
    code = "product_invalid"


# ---------------------------
# Not-found errors
# ---------------------------
class ProductNotFound(PosError):
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: Any):
        super().__init__(f"product {product_id} not found")
        self.product_id = product_id


class IndexOutOfRange(PosError):
    code = "index_out_of_range"
    status_code = 404

    def __init__(self, index: Any, size: int):
        super().__init__(f"cart has no line at index {index} (lines: {size})")
        self.index = index
        self.size = size


# ---------------------------
# Catalogue conflicts
# ---------------------------
class DuplicateProduct(PosError):
    code = "duplicate_product"
    status_code = 409

    def __init__(self, name: str):
        super().__init__(f"a product named '{name}' already exists")
        self.name = name


# ---------------------------
# Checkout errors
# ---------------------------
class CheckoutError(PosError):
    code = "checkout_error"


class InvalidPayment(CheckoutError):
    code = "invalid_payment"

    def __init__(self, value: Any):
        super().__init__(f"amount received must be a positive number, got {value!r}")
        self.value = value


class EmptyCart(CheckoutError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("cart is empty, add products first")


class InsufficientPayment(CheckoutError):
    code = "insufficient_payment"
    status_code = 402

    def __init__(self, shortfall: Decimal):
        super().__init__(f"payment is short by {shortfall}")
        self.shortfall = shortfall


class StockConflict(CheckoutError):
    code = "stock_conflict"
    status_code = 409

    def __init__(self, product_id: int, product_name: str):
        super().__init__(f"insufficient stock for product: {product_name}")
        self.product_id = product_id
        self.product_name = product_name


class StorageFailure(CheckoutError):
    code = "storage_failure"
    status_code = 503

    def __init__(self, reason: str):
        super().__init__(f"sale was not recorded: {reason}")
        self.reason = reason
