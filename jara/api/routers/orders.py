# jara/api/routers/orders.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.deps import get_current_actor, get_session
from jara.core.audit import new_trace
from jara.core.security import Actor
from jara.schemas.order import OrderDetailOut, OrderOut, OrderStatusIn
from jara.services.order_fulfillment import OrderFulfillment
from jara.services.order_query_service import OrderQueryService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
async def list_my_orders(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    rows = await OrderQueryService.list_for_buyer(session, actor, limit=limit, offset=offset)
    return [OrderOut.model_validate(o) for o in rows]


@router.get("/{order_id}", response_model=OrderDetailOut)
async def get_order(
    order_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    order = await OrderQueryService.get_for_actor(session, actor, order_id)
    return OrderDetailOut.from_order(order)


@router.post("/{order_id}/status", response_model=OrderDetailOut)
async def advance_order(
    order_id: int,
    payload: OrderStatusIn,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """
    Seller moves the order one step forward (or cancels it).
    409 invalid_transition when the step is not legal from the current status.
    """
    order = await OrderFulfillment.advance(
        session,
        actor=actor,
        order_id=order_id,
        requested_status=payload.status,
        trace=new_trace(f"http:/orders/{order_id}/status"),
    )
    return OrderDetailOut.from_order(order)
