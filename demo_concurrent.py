import asyncio

from kasir import config
from sdk.posclient import PosClient


async def checkout_race(client: PosClient, session_id: str, amount: str):
    r = await client.checkout_async(session_id, amount)
    body = r.json()
    if r.status_code == 200:
        print(f"✅ {session_id} paid {body['amount_received']}, "
              f"sale #{body['id']}, change {body['change_amount']}")
    elif r.status_code == 409:
        print(f"❌ {session_id} lost the race: {body['detail']['message']}")
    else:
        print(f"⚠️  {session_id} unexpected response {r.status_code}: {body}")


async def main():
    c = PosClient(base_url=config.API_URL)
    c.reset()

    product = c.register_product("Gaming Laptop", "5000000", 2)
    print(f"\n🖥️  Registered product: {product}")

    # both carts are valid on their own; only one can be paid for
    for sid in ("till-1", "till-2"):
        c.add_to_cart(sid, product["id"], 2)

    print("\n⚡ Racing two checkouts for the last 2 units...")
    await asyncio.gather(
        checkout_race(c, "till-1", "10000000"),
        checkout_race(c, "till-2", "10000000"),
    )

    print("\n📦 Final product state:", c.get_product(product["id"]))
    print("🧾 Sales:", c.list_sales())
    print("🛒 till-1 cart:", c.view_cart("till-1"))
    print("🛒 till-2 cart:", c.view_cart("till-2"))


if __name__ == "__main__":
    asyncio.run(main())
