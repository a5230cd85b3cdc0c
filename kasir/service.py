# kasir/service.py
import threading
from decimal import Decimal
from typing import Any, Dict

from .cart import CartStore
from .checkout import CheckoutTransactionManager
from .database import InventoryStore
from .errors import CheckoutError, IndexOutOfRange, PosError
from .models import CartSnapshot, SaleRecord, SnapshotLine
from .result import Ok, Result

# This file holds the per-session facade the HTTP handlers and the terminal call.


class PosSession:
    def __init__(self, session_id: str, store: InventoryStore):
        self.session_id = session_id
        self.cart = CartStore(store)
        self._checkout = CheckoutTransactionManager(store)

    def snapshot(self) -> CartSnapshot:
        lines = self.cart.list()
        return CartSnapshot(
            session_id=self.session_id,
            lines=[SnapshotLine(index=i, **line.model_dump(exclude={"subtotal"})) for i, line in enumerate(lines)],
            total=self.cart.total(),
            item_count=sum(line.quantity for line in lines),
        )

    def add_to_cart(self, product_id: Any, quantity: Any) -> Result[CartSnapshot, PosError]:
        added = self.cart.add_item(product_id, quantity)
        if not added.ok:
            return added
        return Ok(self.snapshot())

    def remove_from_cart(self, index: Any) -> Result[CartSnapshot, IndexOutOfRange]:
        removed = self.cart.remove_item(index)
        if not removed.ok:
            return removed
        return Ok(self.snapshot())

    def get_cart_total(self) -> Decimal:
        return self.cart.total()

    def checkout(self, amount_received: Any) -> Result[SaleRecord, CheckoutError]:
        return self._checkout.commit(self.cart, amount_received)


class SessionRegistry:
    """Session id -> PosSession. Carts are never shared between ids."""

    def __init__(self, store: InventoryStore):
        self.store = store
        self._sessions: Dict[str, PosSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> PosSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = PosSession(session_id, self.store)
                self._sessions[session_id] = session
            return session

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()
