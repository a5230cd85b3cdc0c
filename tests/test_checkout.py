import sqlite3
import threading
from decimal import Decimal

import pytest

from kasir.cart import CartStore
from kasir.checkout import CheckoutTransactionManager
from kasir.database import UnitOfWork
from kasir.errors import (
    EmptyCart, InsufficientPayment, InvalidPayment, StockConflict, StorageFailure,
)


@pytest.fixture
def manager(store):
    return CheckoutTransactionManager(store)


@pytest.fixture
def two_line_cart(store, make_product):
    a = make_product("Indomie", "3500", 10)
    b = make_product("Kopi", "8000", 5)
    cart = CartStore(store)
    cart.add_item(a.id, 4)
    cart.add_item(b.id, 2)
    return cart, a, b


def _state(store, cart):
    return [p.model_dump() for p in store.list_products()], cart.list(), store.list_sales()


def test_successful_checkout(store, manager, two_line_cart):
    cart, a, b = two_line_cart
    result = manager.commit(cart, "50000")
    assert result.ok
    sale = result.value
    assert sale.total_amount == Decimal("30000")
    assert sale.amount_received == Decimal("50000")
    assert sale.change_amount == Decimal("20000")
    assert store.get_product(a.id).stock_quantity == 6
    assert store.get_product(b.id).stock_quantity == 3
    assert cart.is_empty
    sales = store.list_sales()
    assert len(sales) == 1
    assert sales[0].id == sale.id
    assert sales[0].change_amount == Decimal("20000")


def test_exact_payment_gives_zero_change(manager, two_line_cart):
    cart, _, _ = two_line_cart
    assert manager.commit(cart, 30000).value.change_amount == Decimal("0")


@pytest.mark.parametrize("amount", ["abc", "", None, 0, "-5", "NaN", "Infinity", True, "1e999999999", "1e16"])
def test_invalid_payment(store, manager, two_line_cart, amount):
    cart, _, _ = two_line_cart
    before = _state(store, cart)
    result = manager.commit(cart, amount)
    assert isinstance(result.error, InvalidPayment)
    assert _state(store, cart) == before


def test_largest_accepted_payment(manager, two_line_cart):
    cart, _, _ = two_line_cart
    sale = manager.commit(cart, "1e15").unwrap()
    assert sale.change_amount == Decimal("999999999970000")


def test_invalid_payment_checked_before_empty_cart(store, manager):
    assert isinstance(manager.commit(CartStore(store), "x").error, InvalidPayment)
    assert isinstance(manager.commit(CartStore(store), "1000").error, EmptyCart)


def test_insufficient_payment(store, manager, two_line_cart):
    cart, _, _ = two_line_cart
    before = _state(store, cart)
    result = manager.commit(cart, "29999.50")
    assert isinstance(result.error, InsufficientPayment)
    assert result.error.shortfall == Decimal("0.50")
    assert _state(store, cart) == before


def test_stock_conflict_rolls_everything_back(store, manager, two_line_cart):
    cart, a, b = two_line_cart
    # someone else sold Kopi after it went into this cart
    store.update_product(b.id, "Kopi", "8000", 1).unwrap()
    before = _state(store, cart)
    result = manager.commit(cart, "50000")
    assert isinstance(result.error, StockConflict)
    assert result.error.product_id == b.id
    assert "Kopi" in result.error.message
    # Indomie's decrement and the sale row were undone too
    assert _state(store, cart) == before
    assert store.get_product(a.id).stock_quantity == 10


def test_deleted_product_is_a_conflict(store, manager, two_line_cart):
    cart, a, _ = two_line_cart
    store.delete_product(a.id).unwrap()
    result = manager.commit(cart, "50000")
    assert isinstance(result.error, StockConflict)
    assert store.list_sales() == []
    assert len(cart) == 2


def test_storage_failure_rolls_back(store, manager, two_line_cart, monkeypatch):
    cart, a, b = two_line_cart
    real_decrement = UnitOfWork.conditional_decrement_stock
    calls = []

    def flaky(self, product_id, amount):
        calls.append(product_id)
        if len(calls) == 2:
            raise sqlite3.OperationalError("disk I/O error")
        return real_decrement(self, product_id, amount)

    monkeypatch.setattr(UnitOfWork, "conditional_decrement_stock", flaky)
    before = _state(store, cart)
    result = manager.commit(cart, "50000")
    assert isinstance(result.error, StorageFailure)
    assert _state(store, cart) == before


def test_retry_after_conflict_succeeds_once_stock_returns(store, manager, two_line_cart):
    cart, _, b = two_line_cart
    store.update_product(b.id, "Kopi", "8000", 1).unwrap()
    assert not manager.commit(cart, "50000").ok
    store.update_product(b.id, "Kopi", "8000", 2).unwrap()
    assert manager.commit(cart, "50000").ok
    assert store.get_product(b.id).stock_quantity == 0


def _race(store, carts):
    barrier = threading.Barrier(len(carts))
    results = [None] * len(carts)

    def run(i, cart):
        manager = CheckoutTransactionManager(store)
        barrier.wait()
        results[i] = manager.commit(cart, "1000000")

    threads = [threading.Thread(target=run, args=(i, cart)) for i, cart in enumerate(carts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_concurrent_checkout_of_last_unit(store, make_product):
    p = make_product("Last One", "25000", 1)
    carts = [CartStore(store), CartStore(store)]
    for cart in carts:
        assert cart.add_item(p.id, 1).ok

    results = _race(store, carts)

    assert sum(r.ok for r in results) == 1
    loser = next(r for r in results if not r.ok)
    assert isinstance(loser.error, StockConflict)
    assert store.get_product(p.id).stock_quantity == 0
    assert len(store.list_sales()) == 1
    # winner's cart emptied, loser's untouched
    assert sorted(len(c) for c in carts) == [0, 1]


def test_many_concurrent_checkouts_never_oversell(store, make_product):
    p = make_product("Limited", "1000", 3)
    carts = []
    for _ in range(8):
        cart = CartStore(store)
        cart.add_item(p.id, 1)
        carts.append(cart)

    results = _race(store, carts)

    assert sum(r.ok for r in results) == 3
    assert all(isinstance(r.error, StockConflict) for r in results if not r.ok)
    assert store.get_product(p.id).stock_quantity == 0
    assert len(store.list_sales()) == 3
