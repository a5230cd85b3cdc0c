from decimal import Decimal
from typing import Any

from pydantic import BaseModel


class ProductIn(BaseModel):
    name: str
    unit_price: Decimal
    stock_quantity: int


# quantity and amount_received stay untyped: the cart and checkout
# validators turn bad values into NotNumeric / InvalidPayment
class AddToCartIn(BaseModel):
    product_id: int
    quantity: Any = 1


class CheckoutIn(BaseModel):
    amount_received: Any
