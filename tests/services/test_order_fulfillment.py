# tests/services/test_order_fulfillment.py
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from jara.models.enums import OrderStatus as S
from jara.services.order_errors import (
    InvalidTransition,
    OrderNotFound,
    PersistenceUnavailable,
    Unauthorized,
)
from jara.services.order_fulfillment import OrderFulfillment, current_status
from tests.helpers.auth import ADMIN, BUYER, OWNER_A, OWNER_B
from tests.helpers.orders import force_status, place_single_order, seed_option, seed_store

pytestmark = pytest.mark.contract


async def _paid_order(session: AsyncSession) -> int:
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    opt = await seed_option(session, store.id, fee="300")
    order_id = await place_single_order(session, buyer=BUYER, store=store, option=opt)
    await force_status(session, order_id, S.PENDING, S.PAID)
    return order_id


@pytest.mark.asyncio
async def test_owner_walks_the_happy_path(session: AsyncSession):
    order_id = await _paid_order(session)

    for target in (S.PROCESSING, S.SHIPPED, S.DELIVERED):
        order = await OrderFulfillment.advance(
            session, actor=OWNER_A, order_id=order_id, requested_status=target
        )
        assert order.status == target

    assert await current_status(session, order_id) == S.DELIVERED


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [S.SHIPPED, S.DELIVERED, S.PAID, S.PENDING])
async def test_skip_backward_and_same_status_are_rejected(session: AsyncSession, target):
    order_id = await _paid_order(session)
    with pytest.raises(InvalidTransition) as ei:
        await OrderFulfillment.advance(session, actor=OWNER_A, order_id=order_id, requested_status=target)
    assert ei.value.current == "paid"
    assert await current_status(session, order_id) == S.PAID


@pytest.mark.asyncio
async def test_seller_cannot_mark_pending_as_paid(session: AsyncSession):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    opt = await seed_option(session, store.id)
    order_id = await place_single_order(session, buyer=BUYER, store=store, option=opt)

    with pytest.raises(InvalidTransition):
        await OrderFulfillment.advance(session, actor=OWNER_A, order_id=order_id, requested_status="paid")
    assert await current_status(session, order_id) == S.PENDING


@pytest.mark.asyncio
@pytest.mark.parametrize("start", [S.PENDING, S.PAID, S.PROCESSING, S.SHIPPED])
async def test_cancel_before_delivery(session: AsyncSession, start):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    opt = await seed_option(session, store.id)
    order_id = await place_single_order(session, buyer=BUYER, store=store, option=opt)
    path = [S.PENDING, S.PAID, S.PROCESSING, S.SHIPPED]
    for frm, to in zip(path, path[1:]):
        if frm == start:
            break
        await force_status(session, order_id, frm, to)

    order = await OrderFulfillment.advance(
        session, actor=OWNER_A, order_id=order_id, requested_status="cancelled"
    )
    assert order.status == S.CANCELLED


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", [S.DELIVERED, S.CANCELLED])
async def test_terminal_states_accept_nothing(session: AsyncSession, terminal):
    order_id = await _paid_order(session)
    if terminal == S.DELIVERED:
        for frm, to in ((S.PAID, S.PROCESSING), (S.PROCESSING, S.SHIPPED), (S.SHIPPED, S.DELIVERED)):
            await force_status(session, order_id, frm, to)
    else:
        await force_status(session, order_id, S.PAID, S.CANCELLED)

    for target in S:
        with pytest.raises(InvalidTransition):
            await OrderFulfillment.advance(
                session, actor=OWNER_A, order_id=order_id, requested_status=target
            )
    assert await current_status(session, order_id) == terminal


@pytest.mark.asyncio
@pytest.mark.parametrize("actor", [OWNER_B, BUYER, ADMIN], ids=["other-owner", "buyer", "admin"])
async def test_only_the_store_owner_may_advance(session: AsyncSession, actor, caplog):
    order_id = await _paid_order(session)

    with caplog.at_level("WARNING", logger="jara.audit"):
        with pytest.raises(Unauthorized):
            await OrderFulfillment.advance(
                session, actor=actor, order_id=order_id, requested_status="processing"
            )

    assert await current_status(session, order_id) == S.PAID
    assert any(
        "UNAUTHORIZED" in rec.getMessage() and actor.user_id in rec.getMessage() for rec in caplog.records
    )


@pytest.mark.asyncio
async def test_unknown_order(session: AsyncSession):
    with pytest.raises(OrderNotFound):
        await OrderFulfillment.advance(session, actor=OWNER_A, order_id=424242, requested_status="processing")


@pytest.mark.asyncio
async def test_concurrent_advance_has_exactly_one_winner(session: AsyncSession, async_session_maker):
    order_id = await _paid_order(session)

    async def _attempt():
        async with async_session_maker() as s:
            return await OrderFulfillment.advance(
                s, actor=OWNER_A, order_id=order_id, requested_status="processing"
            )

    results = await asyncio.gather(_attempt(), _attempt(), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, BaseException)]
    losers = [r for r in results if isinstance(r, BaseException)]
    assert len(winners) == 1
    assert len(losers) == 1
    # the loser either saw the conditional update miss, or hit the database lock
    assert isinstance(losers[0], (InvalidTransition, PersistenceUnavailable))
    assert await current_status(session, order_id) == S.PROCESSING


@pytest.mark.asyncio
async def test_pool_timeout_on_load_is_persistence_unavailable(session: AsyncSession, monkeypatch):
    order_id = await _paid_order(session)

    async def pool_exhausted(*args, **kwargs):
        raise sa_exc.TimeoutError("QueuePool limit of size 5 overflow 10 reached, connection timed out")

    monkeypatch.setattr(session, "execute", pool_exhausted)
    with pytest.raises(PersistenceUnavailable) as ei:
        await OrderFulfillment.advance(session, actor=OWNER_A, order_id=order_id, requested_status="processing")
    assert ei.value.context == {"op": "advance", "retryable": True}

    monkeypatch.undo()
    assert await current_status(session, order_id) == S.PAID


@pytest.mark.asyncio
async def test_failed_status_write_is_rolled_back(session: AsyncSession, monkeypatch):
    order_id = await _paid_order(session)

    async def broken_update(*args, **kwargs):
        raise sa_exc.OperationalError("UPDATE orders", {}, Exception("server closed the connection"))

    monkeypatch.setattr("jara.services.order_fulfillment.compare_and_set_status", broken_update)
    with pytest.raises(PersistenceUnavailable):
        await OrderFulfillment.advance(session, actor=OWNER_A, order_id=order_id, requested_status="processing")

    assert await current_status(session, order_id) == S.PAID
