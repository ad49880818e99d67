# jara/services/order_errors.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

# driver-level failures and pool checkout timeouts; IntegrityError is a DBAPIError too,
# so callers that retry on it must catch it first
TRANSIENT_DB_ERRORS = (DBAPIError, PoolTimeoutError, OSError)


class OrderDomainError(Exception):
    """
    Expected, typed outcome of an order operation.
    jara.http_problem_handlers maps every subclass onto a Problem response.
    """

    code = "order_error"
    status = 400

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})


class EmptyCart(OrderDomainError):
    code = "empty_cart"
    status = 422

    def __init__(self) -> None:
        super().__init__("cart has no items")


class MissingLogisticsSelection(OrderDomainError):
    code = "missing_logistics_selection"
    status = 422

    def __init__(self, store_ids: Iterable[int]):
        self.store_ids: List[int] = sorted(set(store_ids))
        super().__init__(
            f"no logistics option selected for store(s): {', '.join(map(str, self.store_ids))}",
            context={"store_ids": self.store_ids},
        )


class MissingAddress(OrderDomainError):
    code = "missing_address"
    status = 422

    def __init__(self) -> None:
        super().__init__("delivery address is required")


class LogisticsOptionUnavailable(OrderDomainError):
    code = "logistics_option_unavailable"
    status = 409

    def __init__(self, *, store_id: int, option_id: int, reason: str = "not_found"):
        self.store_id = store_id
        self.option_id = option_id
        self.reason = reason
        super().__init__(
            f"logistics option {option_id} is not available for store {store_id} ({reason})",
            context={"store_id": store_id, "logistics_option_id": option_id, "reason": reason},
        )


class InvalidTransition(OrderDomainError):
    code = "invalid_transition"
    status = 409

    def __init__(self, *, order_id: int, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"order {order_id}: cannot move from {current} to {requested}",
            context={"order_id": order_id, "current": current, "requested": requested},
        )


class OrderNotFound(OrderDomainError):
    code = "order_not_found"
    status = 404

    def __init__(self, ref: Any):
        super().__init__(f"order not found: {ref}", context={"ref": ref})


class StoreNotFound(OrderDomainError):
    code = "store_not_found"
    status = 404

    def __init__(self, store_id: int):
        super().__init__(f"store not found: {store_id}", context={"store_id": store_id})


class Unauthorized(OrderDomainError):
    code = "unauthorized"
    status = 403

    def __init__(self, *, action: str, actor_id: Optional[str], target: Any = None):
        self.action = action
        self.actor_id = actor_id
        super().__init__(
            f"not allowed to {action}",
            context={"action": action, "target": target},
        )


class PersistenceUnavailable(OrderDomainError):
    """Transient infrastructure failure; nothing was committed, the whole call may be retried."""

    code = "persistence_unavailable"
    status = 503

    def __init__(self, op: str):
        self.op = op
        super().__init__(f"persistence unavailable during {op}", context={"op": op, "retryable": True})


class StoreSlugTaken(OrderDomainError):
    code = "store_slug_taken"
    status = 409

    def __init__(self, slug: str):
        super().__init__(f"store slug already in use: {slug}", context={"slug": slug})


class InvalidCartLine(OrderDomainError):
    code = "invalid_cart_line"
    status = 422

    def __init__(self, *, product_id: str, field: str, value: Any):
        self.product_id = product_id
        self.field = field
        super().__init__(
            f"cart line {product_id}: invalid {field} ({value})",
            context={"product_id": product_id, "field": field, "value": str(value)},
        )


class InvalidLogisticsFee(OrderDomainError):
    code = "invalid_logistics_fee"
    status = 422

    def __init__(self, fee: Any):
        super().__init__(f"delivery_fee must be >= 0, got {fee}", context={"delivery_fee": str(fee)})
