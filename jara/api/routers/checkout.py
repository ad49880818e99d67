# jara/api/routers/checkout.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.deps import get_current_actor, get_session
from jara.core.audit import new_trace
from jara.core.security import Actor
from jara.schemas.checkout import CheckoutIn, CheckoutOut, CheckoutQuoteIn, CheckoutQuoteOut
from jara.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/quote", response_model=CheckoutQuoteOut)
async def quote_checkout(
    payload: CheckoutQuoteIn,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """Per-store groups, fees and totals of the cart; nothing is written."""
    q = await CheckoutService.quote(
        session,
        items=[ln.to_cart_line() for ln in payload.items],
        logistics_choice=payload.logistics_choice,
    )
    return CheckoutQuoteOut.from_quote(q)


@router.post("", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
async def place_orders(
    payload: CheckoutIn,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    trace = new_trace("http:/checkout")
    r = await CheckoutService.place_orders(
        session,
        actor=actor,
        items=[ln.to_cart_line() for ln in payload.items],
        logistics_choice=payload.logistics_choice,
        delivery_address=payload.delivery_address,
        trace=trace,
    )
    return CheckoutOut(
        order_ids=r.order_ids,
        order_numbers=r.order_numbers,
        redirect=r.redirect,
        trace_id=r.trace_id,
    )
