# tests/test_concurrency.py
import asyncio

import httpx

from kasir.main import create_app


async def _checkout(app, session_id):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.post(f"/sessions/{session_id}/checkout", json={"amount_received": "5000"})


def test_concurrent_last_item(db_path):
    app = create_app(db_path)
    store = app.state.store
    store.init_db()
    product = store.create_product("last", "1000", 1).unwrap()

    sessions = app.state.sessions
    for sid in ("u1", "u2"):
        assert sessions.get(sid).add_to_cart(product.id, 1).ok

    async def race():
        return await asyncio.gather(_checkout(app, "u1"), _checkout(app, "u2"))

    results = asyncio.run(race())
    statuses = sorted(r.status_code for r in results)
    # one should succeed (200) and the other should fail (409)
    assert statuses == [200, 409]
    assert store.get_product(product.id).stock_quantity == 0
    assert len(store.list_sales()) == 1
