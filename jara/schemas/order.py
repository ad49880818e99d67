# jara/schemas/order.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from jara.models.enums import OrderStatus
from jara.models.order import Order
from jara.services.order_fulfillment import seller_actions


class _Base(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class OrderItemOut(_Base):
    id: int
    product_id: str
    quantity: int
    jara_quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderOut(_Base):
    id: int
    order_number: str
    buyer_id: str
    store_id: int
    subtotal: Decimal
    logistics_fee: Decimal
    total: Decimal
    status: OrderStatus
    logistics_option_id: Optional[int] = None
    delivery_address: str
    payment_reference: Optional[str] = None
    created_at: Optional[datetime] = None


class OrderDetailOut(OrderOut):
    store_name: Optional[str] = None
    items: List[OrderItemOut]
    # what the seller UI offers as buttons
    next_actions: List[OrderStatus]

    @classmethod
    def from_order(cls, order: Order) -> "OrderDetailOut":
        base = OrderOut.model_validate(order).model_dump()
        return cls(
            **base,
            store_name=order.store.name if order.store is not None else None,
            items=[OrderItemOut.model_validate(it) for it in order.items],
            next_actions=seller_actions(order.status),
        )


class OrderStatusIn(_Base):
    status: str
