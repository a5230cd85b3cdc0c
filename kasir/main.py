# kasir/main.py
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .core import AddToCartIn, CheckoutIn, ProductIn
from .database import InventoryStore
from .errors import PosError, ProductNotFound
from .models import CartSnapshot, Product, SaleRecord
from .service import SessionRegistry

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("kasir")


def _fail(error: PosError):
    raise HTTPException(status_code=error.status_code, detail=error.to_detail())


def create_app(db_path: Optional[str] = None) -> FastAPI:
    store = InventoryStore(db_path)
    sessions = SessionRegistry(store)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        store.init_db()
        logger.info("kasir-pos API ready, database %s", store.db_path)
        yield

    app = FastAPI(title="kasir-pos", lifespan=lifespan)
    app.state.store = store
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.post("/products", status_code=201)
    def register_product(payload: ProductIn) -> Product:
        result = store.create_product(payload.name, payload.unit_price, payload.stock_quantity)
        if not result.ok:
            _fail(result.error)
        return result.value

    @app.get("/products")
    def list_products(available_only: bool = False) -> List[Product]:
        return store.list_products(available_only=available_only)

    @app.get("/products/search")
    def search_products(name: str = Query(..., min_length=1)) -> List[Product]:
        return store.search_products(name)

    @app.get("/products/{product_id}")
    def get_product(product_id: int) -> Product:
        product = store.get_product(product_id)
        if product is None:
            _fail(ProductNotFound(product_id))
        return product

    @app.put("/products/{product_id}")
    def update_product(product_id: int, payload: ProductIn) -> Product:
        result = store.update_product(product_id, payload.name, payload.unit_price, payload.stock_quantity)
        if not result.ok:
            _fail(result.error)
        return result.value

    @app.delete("/products/{product_id}")
    def delete_product(product_id: int) -> Dict[str, int]:
        result = store.delete_product(product_id)
        if not result.ok:
            _fail(result.error)
        return {"deleted": result.value}

    # ---------------------------
    # Cart endpoints
    # ---------------------------
    @app.get("/sessions/{session_id}/cart")
    def view_cart(session_id: str) -> CartSnapshot:
        return sessions.get(session_id).snapshot()

    @app.post("/sessions/{session_id}/cart/items")
    def add_to_cart(session_id: str, payload: AddToCartIn) -> CartSnapshot:
        result = sessions.get(session_id).add_to_cart(payload.product_id, payload.quantity)
        if not result.ok:
            _fail(result.error)
        return result.value

    @app.delete("/sessions/{session_id}/cart/items/{index}")
    def remove_from_cart(session_id: str, index: int) -> CartSnapshot:
        result = sessions.get(session_id).remove_from_cart(index)
        if not result.ok:
            _fail(result.error)
        return result.value

    @app.get("/sessions/{session_id}/cart/total")
    def cart_total(session_id: str) -> Dict[str, Decimal]:
        return {"total": sessions.get(session_id).get_cart_total()}

    # ---------------------------
    # Checkout
    # ---------------------------
    @app.post("/sessions/{session_id}/checkout")
    def checkout(session_id: str, payload: CheckoutIn) -> SaleRecord:
        result = sessions.get(session_id).checkout(payload.amount_received)
        if not result.ok:
            _fail(result.error)
        return result.value

    @app.delete("/sessions/{session_id}")
    def end_session(session_id: str) -> Dict[str, bool]:
        return {"dropped": sessions.drop(session_id)}

    # ---------------------------
    # Sales
    # ---------------------------
    @app.get("/sales")
    def list_sales(limit: int = Query(50, ge=1, le=500)) -> List[SaleRecord]:
        return store.list_sales(limit=limit)

    # ---------------------------
    # Utility: reset (for tests/demo)
    # ---------------------------
    @app.post("/reset")
    def reset_all() -> Dict[str, str]:
        store.reset()
        sessions.reset()
        return {"status": "reset"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("kasir.main:app", host="0.0.0.0", port=8085, log_level=config.LOG_LEVEL.lower())
