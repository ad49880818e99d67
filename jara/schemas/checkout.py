# jara/schemas/checkout.py
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jara.services.checkout_types import CartLine, CheckoutQuote


class _Base(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class CartLineIn(_Base):
    """One client-held cart line."""

    product_id: Annotated[str, Field(min_length=1, max_length=64)]
    store_id: Annotated[int, Field(ge=1)]
    store_name: Optional[str] = None
    unit_price: Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
    quantity: Annotated[int, Field(ge=1)]
    jara_buy_quantity: Annotated[int, Field(ge=0)] = 0
    jara_get_quantity: Annotated[int, Field(ge=0)] = 0

    @field_validator("product_id")
    @classmethod
    def _trim(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("product_id must not be blank")
        return s

    def to_cart_line(self) -> CartLine:
        return CartLine(
            product_id=self.product_id,
            store_id=self.store_id,
            store_name=self.store_name,
            unit_price=self.unit_price,
            quantity=self.quantity,
            jara_buy_quantity=self.jara_buy_quantity,
            jara_get_quantity=self.jara_get_quantity,
        )


class CheckoutQuoteIn(_Base):
    items: List[CartLineIn] = Field(default_factory=list)
    # store_id -> logistics option id (JSON object keys arrive as strings)
    logistics_choice: Dict[int, int] = Field(default_factory=dict)


class CheckoutIn(CheckoutQuoteIn):
    delivery_address: str = ""


class CheckoutOut(_Base):
    order_ids: List[int]
    order_numbers: List[str]
    redirect: Literal["order", "orders"]
    trace_id: Optional[str] = None


class QuoteLineOut(_Base):
    product_id: str
    quantity: int
    jara_quantity: int
    unit_price: Decimal
    total_price: Decimal


class StoreQuoteOut(_Base):
    store_id: int
    store_name: Optional[str] = None
    lines: List[QuoteLineOut]
    subtotal: Decimal
    logistics_option_id: Optional[int] = None
    logistics_fee: Decimal
    total: Decimal


class CheckoutQuoteOut(_Base):
    stores: List[StoreQuoteOut]
    missing_logistics_store_ids: List[int]
    subtotal: Decimal
    logistics_total: Decimal
    grand_total: Decimal

    @classmethod
    def from_quote(cls, q: CheckoutQuote) -> "CheckoutQuoteOut":
        return cls(
            stores=[StoreQuoteOut.model_validate(s) for s in q.stores],
            missing_logistics_store_ids=q.missing_logistics_store_ids,
            subtotal=q.subtotal,
            logistics_total=q.logistics_total,
            grand_total=q.grand_total,
        )
