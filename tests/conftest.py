import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from kasir.database import InventoryStore
from kasir.main import create_app


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "kasir-test.db")


@pytest.fixture
def store(db_path):
    s = InventoryStore(db_path)
    s.init_db()
    return s


@pytest.fixture
def make_product(store):
    def _make(name, price, stock):
        return store.create_product(name, Decimal(price), stock).unwrap()
    return _make


@pytest.fixture
def client(db_path):
    with TestClient(create_app(db_path)) as c:
        yield c
