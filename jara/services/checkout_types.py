# jara/services/checkout_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional

_TWO = Decimal("0.01")


def money(val: Any) -> Decimal:
    """Decimal(2dp, ROUND_HALF_UP) from str/int/float/Decimal."""
    d = val if isinstance(val, Decimal) else Decimal(str(val if val is not None else 0))
    return d.quantize(_TWO, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    """One client-held cart line; never persisted as such."""

    product_id: str
    store_id: int
    unit_price: Decimal
    quantity: int
    jara_buy_quantity: int = 0
    jara_get_quantity: int = 0
    store_name: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return money(money(self.unit_price) * self.quantity)


@dataclass
class StoreGroup:
    store_id: int
    store_name: Optional[str]
    lines: List[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return money(sum((ln.line_total for ln in self.lines), Decimal("0")))


@dataclass(frozen=True)
class QuoteLine:
    product_id: str
    quantity: int
    jara_quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class StoreQuote:
    store_id: int
    store_name: Optional[str]
    lines: List[QuoteLine]
    subtotal: Decimal
    logistics_option_id: Optional[int]
    logistics_fee: Decimal

    @property
    def total(self) -> Decimal:
        return money(self.subtotal + self.logistics_fee)


@dataclass(frozen=True)
class CheckoutQuote:
    stores: List[StoreQuote]
    missing_logistics_store_ids: List[int]

    @property
    def subtotal(self) -> Decimal:
        return money(sum((s.subtotal for s in self.stores), Decimal("0")))

    @property
    def logistics_total(self) -> Decimal:
        return money(sum((s.logistics_fee for s in self.stores), Decimal("0")))

    @property
    def grand_total(self) -> Decimal:
        return money(self.subtotal + self.logistics_total)


@dataclass(frozen=True)
class CheckoutResult:
    """Created order ids in store-group order (first appearance of the store in the cart)."""

    order_ids: List[int]
    order_numbers: List[str]
    trace_id: Optional[str] = None

    @property
    def redirect(self) -> str:
        # single order -> its detail/payment page, several -> the order list
        return "order" if len(self.order_ids) == 1 else "orders"
