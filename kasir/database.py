# kasir/database.py
import logging
import sqlite3
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, List, Optional

from . import config
from .errors import DuplicateProduct, PosError, ProductInvalid, ProductNotFound
from .models import Product, SaleRecord
from .result import Err, Ok, Result
from .validation import MAX_AMOUNT, as_int

logger = logging.getLogger(__name__)

# Money is kept as decimal text; the TEXT in the type name gives the column
# text affinity so SQLite never turns it into a float.
sqlite3.register_adapter(Decimal, str)
sqlite3.register_converter("DECIMAL_TEXT", lambda raw: Decimal(raw.decode()))

SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    unit_price DECIMAL_TEXT NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    stock_quantity INTEGER NOT NULL CHECK (stock_quantity >= 0)
);

CREATE TABLE IF NOT EXISTS sales (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    total_amount DECIMAL_TEXT NOT NULL,
    amount_received DECIMAL_TEXT NOT NULL,
    change_amount DECIMAL_TEXT NOT NULL CHECK (CAST(change_amount AS REAL) >= 0),
    created_at TEXT NOT NULL
);
"""


def _row_to_product(row: sqlite3.Row) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        unit_price=row["unit_price"],
        stock_quantity=row["stock_quantity"],
    )


def _row_to_sale(row: sqlite3.Row) -> SaleRecord:
    return SaleRecord(
        id=row["id"],
        total_amount=row["total_amount"],
        amount_received=row["amount_received"],
        change_amount=row["change_amount"],
        timestamp=datetime.fromisoformat(row["created_at"]),
    )


def _check_product_fields(name: Any, unit_price: Any, stock_quantity: Any) -> Result[tuple, PosError]:
    clean_name = name.strip() if isinstance(name, str) else ""
    if not clean_name:
        return Err(ProductInvalid("product name must not be empty"))
    try:
        price = Decimal(str(unit_price))
    except InvalidOperation:
        return Err(ProductInvalid(f"unit price must be a number, got {unit_price!r}"))
    if not price.is_finite() or price < 0 or price > MAX_AMOUNT:
        return Err(ProductInvalid(f"unit price must be between 0 and {MAX_AMOUNT:f}"))
    stock = as_int(stock_quantity)
    if stock is None or stock < 0:
        return Err(ProductInvalid("stock quantity must be a whole number, 0 or more"))
    return Ok((clean_name, price, stock))


class UnitOfWork:
    """Writes that belong to one checkout; only usable inside InventoryStore.unit_of_work()."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def insert_sale_record(self, total: Decimal, amount_received: Decimal, change: Decimal) -> SaleRecord:
        created_at = datetime.now(timezone.utc)
        cur = self._conn.execute(
            "INSERT INTO sales (total_amount, amount_received, change_amount, created_at) VALUES (?, ?, ?, ?)",
            (total, amount_received, change, created_at.isoformat()),
        )
        return SaleRecord(
            id=cur.lastrowid,
            total_amount=total,
            amount_received=amount_received,
            change_amount=change,
            timestamp=created_at,
        )

    def conditional_decrement_stock(self, product_id: int, amount: int) -> int:
        # single statement: the stock check and the subtraction cannot interleave
        cur = self._conn.execute(
            "UPDATE products SET stock_quantity = stock_quantity - ? WHERE id = ? AND stock_quantity >= ?",
            (amount, product_id, amount),
        )
        return cur.rowcount


class InventoryStore:
    """Products and sales tables in a SQLite file.

    Every call opens its own connection so the store can be shared between
    threads; writes outside unit_of_work() autocommit statement by statement.
    """

    def __init__(self, db_path: Optional[str] = None, timeout: Optional[float] = None):
        self.db_path = db_path or config.DB_PATH
        self.timeout = config.DB_TIMEOUT if timeout is None else timeout

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            detect_types=sqlite3.PARSE_DECLTYPES,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with closing(self._connect()) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)
        logger.info("database ready at %s", self.db_path)

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """Commit on clean exit, roll back on any exception."""
        with closing(self._connect()) as conn:
            # take the write lock up front so concurrent checkouts queue here
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield UnitOfWork(conn)
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    # ---------------------------
    # Products
    # ---------------------------
    def get_product(self, product_id: Any) -> Optional[Product]:
        pid = as_int(product_id)
        if pid is None:
            return None
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT id, name, unit_price, stock_quantity FROM products WHERE id = ?", (pid,)
            ).fetchone()
        return _row_to_product(row) if row else None

    def list_products(self, available_only: bool = False) -> List[Product]:
        query = "SELECT id, name, unit_price, stock_quantity FROM products"
        if available_only:
            query += " WHERE stock_quantity > 0"
        query += " ORDER BY id DESC"
        with closing(self._connect()) as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_product(r) for r in rows]

    def search_products(self, term: str) -> List[Product]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT id, name, unit_price, stock_quantity FROM products "
                "WHERE name LIKE ? ESCAPE '\\' AND stock_quantity > 0 ORDER BY name",
                (f"%{_escape_like(term.strip())}%",),
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def create_product(self, name: Any, unit_price: Any, stock_quantity: Any) -> Result[Product, PosError]:
        checked = _check_product_fields(name, unit_price, stock_quantity)
        if not checked.ok:
            return checked
        clean_name, price, stock = checked.value
        try:
            with closing(self._connect()) as conn:
                cur = conn.execute(
                    "INSERT INTO products (name, unit_price, stock_quantity) VALUES (?, ?, ?)",
                    (clean_name, price, stock),
                )
        except sqlite3.IntegrityError:
            return Err(DuplicateProduct(clean_name))
        product = Product(id=cur.lastrowid, name=clean_name, unit_price=price, stock_quantity=stock)
        logger.info("registered product %s (%s)", product.id, product.name)
        return Ok(product)

    def update_product(self, product_id: Any, name: Any, unit_price: Any, stock_quantity: Any) -> Result[Product, PosError]:
        if self.get_product(product_id) is None:
            return Err(ProductNotFound(product_id))
        checked = _check_product_fields(name, unit_price, stock_quantity)
        if not checked.ok:
            return checked
        clean_name, price, stock = checked.value
        pid = as_int(product_id)
        try:
            with closing(self._connect()) as conn:
                cur = conn.execute(
                    "UPDATE products SET name = ?, unit_price = ?, stock_quantity = ? WHERE id = ?",
                    (clean_name, price, stock, pid),
                )
        except sqlite3.IntegrityError:
            return Err(DuplicateProduct(clean_name))
        if cur.rowcount == 0:
            return Err(ProductNotFound(product_id))
        logger.info("updated product %s", pid)
        return Ok(Product(id=pid, name=clean_name, unit_price=price, stock_quantity=stock))

    def delete_product(self, product_id: Any) -> Result[int, PosError]:
        pid = as_int(product_id)
        if pid is None:
            return Err(ProductNotFound(product_id))
        with closing(self._connect()) as conn:
            cur = conn.execute("DELETE FROM products WHERE id = ?", (pid,))
        if cur.rowcount == 0:
            return Err(ProductNotFound(product_id))
        logger.info("deleted product %s", pid)
        return Ok(pid)

    # ---------------------------
    # Sales
    # ---------------------------
    def list_sales(self, limit: int = 50) -> List[SaleRecord]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT id, total_amount, amount_received, change_amount, created_at "
                "FROM sales ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_sale(r) for r in rows]

    def reset(self) -> None:
        with closing(self._connect()) as conn:
            conn.execute("DELETE FROM sales")
            conn.execute("DELETE FROM products")
        logger.warning("all products and sales deleted")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
