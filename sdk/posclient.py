# sdk/posclient.py
import requests
import httpx
from decimal import Decimal
from typing import Union

from kasir import config

Amount = Union[int, str, Decimal]


class PosClient:
    def __init__(self, base_url: str = config.API_URL, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def reset(self):
        r = self.session.post(f"{self.base_url}/reset", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Products
    def register_product(self, name: str, unit_price: Amount, stock_quantity: int):
        r = self.session.post(f"{self.base_url}/products", json={
            "name": name, "unit_price": str(unit_price), "stock_quantity": stock_quantity
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def update_product(self, product_id: int, name: str, unit_price: Amount, stock_quantity: int):
        r = self.session.put(f"{self.base_url}/products/{product_id}", json={
            "name": name, "unit_price": str(unit_price), "stock_quantity": stock_quantity
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def delete_product(self, product_id: int):
        r = self.session.delete(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def list_products(self, available_only: bool = False):
        params = {}
        if available_only:
            params["available_only"] = "true"
        r = self.session.get(f"{self.base_url}/products", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def search_products(self, name: str):
        r = self.session.get(f"{self.base_url}/products/search", params={"name": name}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, product_id: int):
        r = self.session.get(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Cart
    def add_to_cart(self, session_id: str, product_id: int, quantity=1):
        r = self.session.post(f"{self.base_url}/sessions/{session_id}/cart/items", json={
            "product_id": product_id, "quantity": quantity
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def remove_from_cart(self, session_id: str, index: int):
        r = self.session.delete(f"{self.base_url}/sessions/{session_id}/cart/items/{index}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def view_cart(self, session_id: str):
        r = self.session.get(f"{self.base_url}/sessions/{session_id}/cart", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def cart_total(self, session_id: str) -> Decimal:
        r = self.session.get(f"{self.base_url}/sessions/{session_id}/cart/total", timeout=self.timeout)
        r.raise_for_status()
        return Decimal(r.json()["total"])

    def end_session(self, session_id: str):
        r = self.session.delete(f"{self.base_url}/sessions/{session_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Checkout
    def checkout(self, session_id: str, amount_received: Amount):
        # no raise_for_status: callers inspect 402 / 409 themselves
        return self.session.post(f"{self.base_url}/sessions/{session_id}/checkout", json={
            "amount_received": str(amount_received)
        }, timeout=self.timeout)

    async def checkout_async(self, session_id: str, amount_received: Amount):
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(f"{self.base_url}/sessions/{session_id}/checkout", json={
                "amount_received": str(amount_received)
            })

    # Sales
    def list_sales(self, limit: int = 50):
        r = self.session.get(f"{self.base_url}/sales", params={"limit": limit}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="kasir-pos client")
    parser.add_argument("--url", default=config.API_URL, help="API base URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---------------------------
    # Product commands
    # ---------------------------
    lp = subparsers.add_parser("list-products", help="List all products")
    lp.add_argument("--available-only", action="store_true", help="Show only products in stock")

    sp = subparsers.add_parser("search", help="Search in-stock products by name")
    sp.add_argument("--name", required=True, help="Part of the product name")

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", type=int, required=True)

    rp = subparsers.add_parser("register-product", help="Register a new product")
    rp.add_argument("--name", required=True)
    rp.add_argument("--price", required=True, help="Unit price, e.g. 12500 or 3.50")
    rp.add_argument("--stock", type=int, required=True)

    up = subparsers.add_parser("update-product", help="Update a product")
    up.add_argument("--product-id", type=int, required=True)
    up.add_argument("--name", required=True)
    up.add_argument("--price", required=True)
    up.add_argument("--stock", type=int, required=True)

    dp = subparsers.add_parser("delete-product", help="Delete a product")
    dp.add_argument("--product-id", type=int, required=True)

    # ---------------------------
    # Cart commands
    # ---------------------------
    add = subparsers.add_parser("add-to-cart", help="Add product to a session's cart")
    add.add_argument("--session", required=True)
    add.add_argument("--product-id", type=int, required=True)
    add.add_argument("--qty", required=True)

    rm = subparsers.add_parser("remove-from-cart", help="Remove a cart line by its index")
    rm.add_argument("--session", required=True)
    rm.add_argument("--index", type=int, required=True)

    vc = subparsers.add_parser("view-cart", help="View cart contents")
    vc.add_argument("--session", required=True)

    # ---------------------------
    # Checkout / sales
    # ---------------------------
    co = subparsers.add_parser("checkout", help="Pay for a session's cart")
    co.add_argument("--session", required=True)
    co.add_argument("--amount", required=True, help="Amount received from the shopper")

    ls = subparsers.add_parser("list-sales", help="Most recent sales")
    ls.add_argument("--limit", type=int, default=50)

    # ---------------------------
    # Parse and execute
    # ---------------------------
    args = parser.parse_args()
    c = PosClient(base_url=args.url)

    if args.command == "list-products":
        print(c.list_products(args.available_only))
    elif args.command == "search":
        print(c.search_products(args.name))
    elif args.command == "get-product":
        print(c.get_product(args.product_id))
    elif args.command == "register-product":
        print(c.register_product(args.name, args.price, args.stock))
    elif args.command == "update-product":
        print(c.update_product(args.product_id, args.name, args.price, args.stock))
    elif args.command == "delete-product":
        print(c.delete_product(args.product_id))
    elif args.command == "add-to-cart":
        print(c.add_to_cart(args.session, args.product_id, args.qty))
    elif args.command == "remove-from-cart":
        print(c.remove_from_cart(args.session, args.index))
    elif args.command == "view-cart":
        print(c.view_cart(args.session))
    elif args.command == "checkout":
        r = c.checkout(args.session, args.amount)
        print(r.status_code, r.json())
    elif args.command == "list-sales":
        print(c.list_sales(args.limit))
