# kasir/cart.py
import logging
from decimal import Decimal
from typing import Any, List, Optional, Protocol, Tuple

from .errors import IndexOutOfRange, PosError, ProductNotFound
from .models import CartLine, Product
from .result import Err, Ok, Result
from .totals import compute_total
from .validation import as_int, validate_quantity

logger = logging.getLogger(__name__)


class ProductLookup(Protocol):
    def get_product(self, product_id: Any) -> Optional[Product]: ...


class CartStore:
    """Cart lines of a single session.

    A CartStore is owned by exactly one session and is never shared, so it
    holds no locks. Lines are addressed by position; after a removal the
    remaining lines are renumbered 0..n-1.
    """

    def __init__(self, products: ProductLookup):
        self._products = products
        self._lines: List[CartLine] = []

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def _find(self, product_id: int) -> Optional[int]:
        for i, line in enumerate(self._lines):
            if line.product_id == product_id:
                return i
        return None

    def add_item(self, product_id: Any, requested_quantity: Any) -> Result[CartLine, PosError]:
        product = self._products.get_product(product_id)
        if product is None:
            return Err(ProductNotFound(product_id))

        checked = validate_quantity(requested_quantity, product.stock_quantity)
        if not checked.ok:
            return checked
        quantity = checked.value

        pos = self._find(product.id)
        if pos is None:
            line = CartLine(
                product_id=product.id,
                product_name=product.name,
                unit_price=product.unit_price,
                quantity=quantity,
            )
            self._lines.append(line)
            logger.debug("cart: added %s x%d", product.name, quantity)
            return Ok(line)

        existing = self._lines[pos]
        # against current stock, not the stock seen when the line was first added
        combined = validate_quantity(existing.quantity + quantity, product.stock_quantity)
        if not combined.ok:
            return combined
        line = existing.model_copy(update={"quantity": combined.value})
        self._lines[pos] = line
        logger.debug("cart: %s now x%d", product.name, line.quantity)
        return Ok(line)

    def remove_item(self, index: Any) -> Result[CartLine, IndexOutOfRange]:
        pos = as_int(index)
        if pos is None or pos < 0 or pos >= len(self._lines):
            return Err(IndexOutOfRange(index, len(self._lines)))
        # list.pop compacts the remaining lines
        line = self._lines.pop(pos)
        logger.debug("cart: removed %s", line.product_name)
        return Ok(line)

    def clear(self) -> None:
        self._lines.clear()

    def list(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def total(self) -> Decimal:
        return compute_total(self._lines)
