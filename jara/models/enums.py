# jara/models/enums.py
from __future__ import annotations

from enum import StrEnum


class OrderStatus(StrEnum):
    """
    Fulfillment lifecycle of one store order:

    pending -> paid -> processing -> shipped -> delivered
    cancelled is reachable from every state before delivered.
    """

    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class LogisticsType(StrEnum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class StoreStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class ActorRole(StrEnum):
    BUYER = "buyer"
    STORE_OWNER = "store_owner"
    ADMIN = "admin"


def enum_values(enum_cls) -> list[str]:
    """Persist enum values (lowercase) rather than member names."""
    return [m.value for m in enum_cls]
