# kasir/checkout.py
import logging
import sqlite3
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .cart import CartStore
from .database import InventoryStore
from .errors import (
    CheckoutError, EmptyCart, InsufficientPayment, InvalidPayment,
    StockConflict, StorageFailure,
)
from .models import CartLine, SaleRecord
from .result import Err, Ok, Result
from .totals import compute_total
from .validation import MAX_AMOUNT

logger = logging.getLogger(__name__)


class CommitState(str, Enum):
    VALIDATING = "validating"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class _Conflict(Exception):
    # aborts the unit of work from inside the with-block
    def __init__(self, line: CartLine):
        super().__init__(line.product_name)
        self.line = line


def parse_payment(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        return None
    return amount


class CheckoutTransactionManager:
    """Turns a cart into a sale: one sales row plus a stock decrement per line.

    Either every effect is committed or none is. Stock is decremented with a
    conditional UPDATE (``... WHERE stock_quantity >= amount``), so two
    checkouts racing for the same units can never push stock below zero: the
    loser sees zero affected rows and its whole unit of work is rolled back.
    There is no retry here; the caller decides what to do with a conflict.
    """

    def __init__(self, store: InventoryStore):
        self.store = store

    def commit(self, cart: CartStore, amount_received: Any) -> Result[SaleRecord, CheckoutError]:
        state = CommitState.VALIDATING
        logger.debug("checkout: %s", state.value)

        received = parse_payment(amount_received)
        if received is None:
            return Err(InvalidPayment(amount_received))
        if cart.is_empty:
            return Err(EmptyCart())

        lines = cart.list()
        total = compute_total(lines)
        change = received - total
        if change < 0:
            return Err(InsufficientPayment(-change))

        state = CommitState.COMMITTING
        logger.debug("checkout: %s %d lines, total %s", state.value, len(lines), total)
        try:
            with self.store.unit_of_work() as uow:
                sale = uow.insert_sale_record(total, received, change)
                for line in lines:
                    if uow.conditional_decrement_stock(line.product_id, line.quantity) == 0:
                        raise _Conflict(line)
        except _Conflict as conflict:
            state = CommitState.ROLLED_BACK
            logger.warning(
                "checkout %s: stock conflict on product %s (%s)",
                state.value, conflict.line.product_id, conflict.line.product_name,
            )
            return Err(StockConflict(conflict.line.product_id, conflict.line.product_name))
        except sqlite3.Error as e:
            state = CommitState.ROLLED_BACK
            logger.exception("checkout %s: storage failure", state.value)
            return Err(StorageFailure(str(e)))

        state = CommitState.COMMITTED
        cart.clear()
        logger.info(
            "checkout %s: sale %s total=%s received=%s change=%s",
            state.value, sale.id, sale.total_amount, sale.amount_received, sale.change_amount,
        )
        return Ok(sale)
