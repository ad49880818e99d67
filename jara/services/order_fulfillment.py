# jara/services/order_fulfillment.py
from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.audit import TraceContext, audit_rejection, ensure_trace
from jara.core.security import Actor
from jara.metrics import TRANSITIONS, TRANSITIONS_REJECTED
from jara.models.enums import OrderStatus
from jara.models.order import Order
from jara.services.order_errors import (
    InvalidTransition,
    OrderDomainError,
    OrderNotFound,
    TRANSIENT_DB_ERRORS,
    PersistenceUnavailable,
    Unauthorized,
)

log = logging.getLogger("jara.fulfillment")

# happy path: pending -> paid -> processing -> shipped -> delivered
HAPPY_PATH: List[OrderStatus] = [
    OrderStatus.PENDING,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

TERMINAL_STATES: FrozenSet[OrderStatus] = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# what the store owner may request from each state;
# pending -> paid belongs to payment capture and is not listed here
SELLER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def successor(status: OrderStatus) -> Optional[OrderStatus]:
    """The single forward step on the happy path, None for terminal states."""
    if status in TERMINAL_STATES:
        return None
    return HAPPY_PATH[HAPPY_PATH.index(status) + 1]


def seller_actions(status: OrderStatus) -> List[OrderStatus]:
    """Legal seller requests from `status`: forward step first, cancellation last."""
    status = OrderStatus(status)
    allowed = SELLER_TRANSITIONS[status]
    out: List[OrderStatus] = []
    nxt = successor(status)
    if nxt is not None and nxt in allowed:
        out.append(nxt)
    if OrderStatus.CANCELLED in allowed:
        out.append(OrderStatus.CANCELLED)
    return out


def check_seller_transition(order_id: int, current: OrderStatus, requested: Any) -> OrderStatus:
    """
    Parse `requested` and make sure it is legal from `current`; raises InvalidTransition.
    Requesting the current status is not a no-op, it is rejected too.
    """
    try:
        target = OrderStatus(str(requested).strip().lower())
    except ValueError:
        raise InvalidTransition(order_id=order_id, current=str(current), requested=str(requested)) from None
    if target not in SELLER_TRANSITIONS[OrderStatus(current)]:
        raise InvalidTransition(order_id=order_id, current=str(current), requested=str(target))
    return target


async def compare_and_set_status(
    session: AsyncSession,
    *,
    order_id: int,
    expected: OrderStatus,
    new: OrderStatus,
    values: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    UPDATE orders SET status=:new WHERE id=:id AND status=:expected

    The read-modify-write happens in one statement; a concurrent writer that got there
    first leaves zero affected rows and this returns False. Does not commit.
    """
    stmt = (
        update(Order)
        .where(Order.id == int(order_id), Order.status == expected)
        .values(status=new, updated_at=func.now(), **(values or {}))
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return (res.rowcount or 0) == 1


async def current_status(session: AsyncSession, order_id: int) -> Optional[OrderStatus]:
    row = await session.execute(select(Order.status).where(Order.id == int(order_id)))
    val = row.scalar_one_or_none()
    return OrderStatus(val) if val is not None else None


class OrderFulfillment:
    """
    Fulfillment state machine, seller side.

    advance(order_id, requested): only the owner of the order's store may call it, only the
    single legal successor (or cancelled before delivery) is accepted, and the status write is a
    conditional update so two racing calls can never both succeed.
    """

    @staticmethod
    async def advance(
        session: AsyncSession,
        *,
        actor: Actor,
        order_id: int,
        requested_status: Any,
        trace: Optional[TraceContext] = None,
    ) -> Order:
        trace = ensure_trace(trace, "advance")
        try:
            return await OrderFulfillment._advance(
                session, actor=actor, order_id=int(order_id), requested_status=requested_status, trace=trace
            )
        except OrderDomainError as e:
            TRANSITIONS_REJECTED.labels(e.code).inc()
            raise

    @staticmethod
    async def _advance(
        session: AsyncSession,
        *,
        actor: Actor,
        order_id: int,
        requested_status: Any,
        trace: TraceContext,
    ) -> Order:
        try:
            order = (
                await session.execute(
                    select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
        except TRANSIENT_DB_ERRORS as e:
            await session.rollback()
            raise PersistenceUnavailable("advance") from e

        if order is None:
            raise OrderNotFound(order_id)

        if order.store is None or order.store.owner_id != actor.user_id:
            audit_rejection(
                action="advance_order",
                actor_id=actor.user_id,
                role=actor.role,
                target=f"order:{order_id}",
                trace=trace,
            )
            raise Unauthorized(action="advance_order", actor_id=actor.user_id, target=f"order:{order_id}")

        current = OrderStatus(order.status)
        target = check_seller_transition(order_id, current, requested_status)

        try:
            ok = await compare_and_set_status(session, order_id=order_id, expected=current, new=target)
            if not ok:
                await session.rollback()
                now = await current_status(session, order_id)
                log.info(
                    "advance lost race order=%s expected=%s now=%s requested=%s trace=%s",
                    order_id,
                    current,
                    now,
                    target,
                    trace.trace_id,
                )
                raise InvalidTransition(order_id=order_id, current=str(now), requested=str(target))
            await session.commit()
            await session.refresh(order)
        except TRANSIENT_DB_ERRORS as e:
            await session.rollback()
            raise PersistenceUnavailable("advance") from e

        TRANSITIONS.labels(str(target)).inc()
        log.info(
            "order status changed no=%s %s -> %s by=%s trace=%s",
            order.order_number,
            current,
            target,
            actor.user_id,
            trace.trace_id,
        )
        return order
