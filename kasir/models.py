# kasir/models.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    stock_quantity: int = Field(ge=0)


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int = Field(gt=0)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class SnapshotLine(CartLine):
    index: int


class CartSnapshot(BaseModel):
    session_id: str
    lines: List[SnapshotLine]
    total: Decimal
    item_count: int


class SaleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    total_amount: Decimal
    amount_received: Decimal
    change_amount: Decimal
    timestamp: datetime

    @model_validator(mode="after")
    def _check_change(self):
        if self.change_amount != self.amount_received - self.total_amount:
            raise ValueError("change_amount must equal amount_received - total_amount")
        if self.change_amount < 0:
            raise ValueError("change_amount must not be negative")
        return self
