# kasir/totals.py
import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

logger = logging.getLogger(__name__)


def _subtotal_of(line: Any) -> Any:
    if isinstance(line, Mapping):
        return line.get("subtotal")
    return getattr(line, "subtotal", None)


def compute_total(lines: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for position, line in enumerate(lines):
        raw = _subtotal_of(line)
        if isinstance(raw, bool) or raw is None:
            logger.warning("cart line %d has no usable subtotal, skipping", position)
            continue
        try:
            subtotal = Decimal(str(raw))
        except InvalidOperation:
            logger.warning("cart line %d has non-numeric subtotal %r, skipping", position, raw)
            continue
        if not subtotal.is_finite():
            logger.warning("cart line %d has non-finite subtotal %r, skipping", position, raw)
            continue
        total += subtotal
    return total
