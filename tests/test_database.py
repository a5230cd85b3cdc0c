from decimal import Decimal

import pytest

from kasir.errors import DuplicateProduct, ProductInvalid, ProductNotFound


def test_create_and_get_product(store):
    p = store.create_product("  Sabun  ", "4500.25", 12).unwrap()
    assert p.name == "Sabun"
    fetched = store.get_product(p.id)
    assert fetched == p
    assert fetched.unit_price == Decimal("4500.25")


def test_prices_keep_decimal_precision(store):
    p = store.create_product("Precise", Decimal("0.1"), 1).unwrap()
    assert store.get_product(p.id).unit_price * 3 == Decimal("0.3")


@pytest.mark.parametrize("name,price,stock", [
    ("", "100", 1),
    ("   ", "100", 1),
    ("X", "-1", 1),
    ("X", "abc", 1),
    ("X", "1e999999999", 1),
    ("X", "100", -1),
    ("X", "100", "many"),
])
def test_create_rejects_bad_fields(store, name, price, stock):
    assert isinstance(store.create_product(name, price, stock).error, ProductInvalid)
    assert store.list_products() == []


def test_duplicate_names_rejected(store, make_product):
    make_product("Kecap", "9000", 3)
    assert isinstance(store.create_product("Kecap", "1", 1).error, DuplicateProduct)


def test_update_product(store, make_product):
    p = make_product("Saos", "7000", 3)
    other = make_product("Sambal", "7500", 3)
    updated = store.update_product(p.id, "Saos Tomat", "7200", 8).unwrap()
    assert store.get_product(p.id) == updated
    assert isinstance(store.update_product(p.id, "Sambal", "1", 1).error, DuplicateProduct)
    # keeping its own name is not a duplicate
    assert store.update_product(other.id, "Sambal", "8000", 1).ok
    assert isinstance(store.update_product(999, "Nope", "1", 1).error, ProductNotFound)


def test_delete_product(store, make_product):
    p = make_product("Garam", "2000", 3)
    assert store.delete_product(p.id).value == p.id
    assert store.get_product(p.id) is None
    assert isinstance(store.delete_product(p.id).error, ProductNotFound)


def test_list_and_search(store, make_product):
    make_product("Teh Botol", "5000", 4)
    make_product("Teh Celup", "9000", 0)
    make_product("Kopi 50%", "8000", 2)
    assert [p.name for p in store.list_products()] == ["Kopi 50%", "Teh Celup", "Teh Botol"]
    assert [p.name for p in store.list_products(available_only=True)] == ["Kopi 50%", "Teh Botol"]
    # search only shows what can be sold, case-insensitive
    assert [p.name for p in store.search_products("teh")] == ["Teh Botol"]
    assert [p.name for p in store.search_products("50%")] == ["Kopi 50%"]
    assert store.search_products("_") == []


def test_get_product_with_bad_id(store):
    assert store.get_product("abc") is None
    assert store.get_product(None) is None


def test_unit_of_work_rolls_back_on_error(store, make_product):
    p = make_product("Minyak", "20000", 5)
    with pytest.raises(RuntimeError):
        with store.unit_of_work() as uow:
            uow.insert_sale_record(Decimal("20000"), Decimal("20000"), Decimal("0"))
            assert uow.conditional_decrement_stock(p.id, 5) == 1
            raise RuntimeError("boom")
    assert store.get_product(p.id).stock_quantity == 5
    assert store.list_sales() == []


def test_conditional_decrement(store, make_product):
    p = make_product("Telur", "2500", 3)
    with store.unit_of_work() as uow:
        assert uow.conditional_decrement_stock(p.id, 4) == 0
        assert uow.conditional_decrement_stock(p.id, 3) == 1
        assert uow.conditional_decrement_stock(p.id, 1) == 0
    assert store.get_product(p.id).stock_quantity == 0


def test_reset(store, make_product):
    make_product("A", "1", 1)
    store.reset()
    assert store.list_products() == []
    assert store.list_sales() == []
