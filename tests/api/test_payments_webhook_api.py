# tests/api/test_payments_webhook_api.py
from __future__ import annotations

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.config import get_settings
from jara.models.order import Order
from tests.helpers.auth import BUYER, OWNER_A, bearer
from tests.helpers.orders import place_single_order, seed_option, seed_store


async def _pending(session: AsyncSession) -> tuple[int, str]:
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    opt = await seed_option(session, store.id, fee="300")
    order_id = await place_single_order(session, buyer=BUYER, store=store, option=opt, price="1000")
    number = (await session.execute(select(Order.order_number).where(Order.id == order_id))).scalar_one()
    return order_id, number


def _charge(order_number: str, *, status: str = "successful", amount: str = "1300") -> dict:
    return {
        "event": "charge.completed",
        "data": {"id": 285959875, "tx_ref": order_number, "status": status, "amount": amount},
    }


@pytest.mark.asyncio
async def test_successful_charge_marks_order_paid(client: httpx.AsyncClient, session: AsyncSession):
    order_id, number = await _pending(session)

    r = await client.post("/payments/webhook", json=_charge(number))
    assert r.status_code == 200, r.text
    assert r.json() == {"received": True, "result": "captured", "order_number": number}

    r = await client.get(f"/orders/{order_id}", headers=bearer(BUYER))
    assert r.json()["status"] == "paid"
    assert r.json()["payment_reference"] == "285959875"

    # gateways redeliver
    r = await client.post("/payments/webhook", json=_charge(number))
    assert r.json()["result"] == "already_paid"


@pytest.mark.asyncio
async def test_failed_charge_is_ignored(client: httpx.AsyncClient, session: AsyncSession):
    order_id, number = await _pending(session)
    r = await client.post("/payments/webhook", json=_charge(number, status="failed"))
    assert r.status_code == 200
    assert r.json()["result"] == "ignored"

    r = await client.get(f"/orders/{order_id}", headers=bearer(BUYER))
    assert r.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_unknown_order_number_is_404(client: httpx.AsyncClient):
    r = await client.post("/payments/webhook", json=_charge("ORD-NOPE-0000"))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_verif_hash_is_enforced_when_configured(
    client: httpx.AsyncClient, session: AsyncSession, monkeypatch
):
    _order_id, number = await _pending(session)
    monkeypatch.setattr(get_settings(), "PAYMENT_WEBHOOK_SECRET", "hook-secret")

    r = await client.post("/payments/webhook", json=_charge(number))
    assert r.status_code == 401

    r = await client.post("/payments/webhook", json=_charge(number), headers={"verif-hash": "wrong"})
    assert r.status_code == 401

    r = await client.post("/payments/webhook", json=_charge(number), headers={"verif-hash": "hook-secret"})
    assert r.status_code == 200
    assert r.json()["result"] == "captured"
