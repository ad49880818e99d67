# tests/api/test_checkout_api.py
from __future__ import annotations

import httpx
import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from tests.helpers.auth import BUYER, bearer
from tests.helpers.orders import seed_option, seed_store


async def _seed(session: AsyncSession):
    a = await seed_store(session, owner_id="owner-a", slug="store-a", name="Store A")
    b = await seed_store(session, owner_id="owner-b", slug="store-b", name="Store B")
    a_opt = await seed_option(session, a.id, fee="300")
    b_opt = await seed_option(session, b.id, fee="0")
    return a.id, b.id, a_opt.id, b_opt.id


def _cart(a: int, b: int):
    return [
        {"product_id": "p-1", "store_id": a, "unit_price": "500", "quantity": 2},
        {"product_id": "p-2", "store_id": a, "unit_price": "1000", "quantity": 1},
        {"product_id": "p-3", "store_id": b, "unit_price": "200", "quantity": 3},
    ]


@pytest.mark.asyncio
async def test_checkout_creates_one_order_per_store(client: httpx.AsyncClient, session: AsyncSession):
    a, b, a_opt, b_opt = await _seed(session)

    r = await client.post(
        "/checkout",
        json={
            "items": _cart(a, b),
            "logistics_choice": {str(a): a_opt, str(b): b_opt},
            "delivery_address": "12 Allen Avenue, Ikeja",
        },
        headers=bearer(BUYER),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert len(body["order_ids"]) == 2
    assert body["redirect"] == "orders"

    r = await client.get("/orders", headers=bearer(BUYER))
    assert r.status_code == 200, r.text
    totals = sorted(o["total"] for o in r.json())
    assert totals == sorted(["2300.00", "600.00"])


@pytest.mark.asyncio
async def test_missing_selection_is_422_problem(client: httpx.AsyncClient, session: AsyncSession):
    a, b, a_opt, _ = await _seed(session)

    r = await client.post(
        "/checkout",
        json={
            "items": _cart(a, b),
            "logistics_choice": {str(a): a_opt},
            "delivery_address": "12 Allen Avenue, Ikeja",
        },
        headers=bearer(BUYER),
    )
    assert r.status_code == 422, r.text
    p = r.json()
    assert p["error_code"] == "missing_logistics_selection"
    assert p["context"]["store_ids"] == [b]
    assert p["trace_id"]

    r = await client.get("/orders", headers=bearer(BUYER))
    assert r.json() == []


@pytest.mark.asyncio
async def test_missing_address_is_422(client: httpx.AsyncClient, session: AsyncSession):
    a, _b, a_opt, _ = await _seed(session)
    r = await client.post(
        "/checkout",
        json={
            "items": [{"product_id": "p-1", "store_id": a, "unit_price": "5", "quantity": 1}],
            "logistics_choice": {str(a): a_opt},
            "delivery_address": "   ",
        },
        headers=bearer(BUYER),
    )
    assert r.status_code == 422
    assert r.json()["error_code"] == "missing_address"


@pytest.mark.asyncio
async def test_inactive_option_is_409(client: httpx.AsyncClient, session: AsyncSession):
    a, _b, _a_opt, _ = await _seed(session)
    off = await seed_option(session, a, fee="10", active=False)
    r = await client.post(
        "/checkout",
        json={
            "items": [{"product_id": "p-1", "store_id": a, "unit_price": "5", "quantity": 1}],
            "logistics_choice": {str(a): off.id},
            "delivery_address": "Ikeja",
        },
        headers=bearer(BUYER),
    )
    assert r.status_code == 409
    assert r.json()["error_code"] == "logistics_option_unavailable"


@pytest.mark.asyncio
async def test_zero_quantity_fails_validation(client: httpx.AsyncClient, session: AsyncSession):
    a, _b, a_opt, _ = await _seed(session)
    r = await client.post(
        "/checkout",
        json={
            "items": [{"product_id": "p-1", "store_id": a, "unit_price": "5", "quantity": 0}],
            "logistics_choice": {str(a): a_opt},
            "delivery_address": "Ikeja",
        },
        headers=bearer(BUYER),
    )
    assert r.status_code == 422
    assert r.json()["error_code"] == "request_validation_error"


@pytest.mark.asyncio
async def test_checkout_requires_token(client: httpx.AsyncClient):
    r = await client.post("/checkout", json={"items": [], "delivery_address": "x"})
    assert r.status_code == 401
    assert r.json()["error_code"] == "not_authenticated"

    r = await client.post(
        "/checkout",
        json={"items": [], "delivery_address": "x"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_quote(client: httpx.AsyncClient, session: AsyncSession):
    a, b, a_opt, _ = await _seed(session)
    r = await client.post(
        "/checkout/quote",
        json={"items": _cart(a, b), "logistics_choice": {str(a): a_opt}},
        headers=bearer(BUYER),
    )
    assert r.status_code == 200, r.text
    q = r.json()
    assert q["missing_logistics_store_ids"] == [b]
    assert q["grand_total"] == "2900.00"
    assert [s["store_id"] for s in q["stores"]] == [a, b]


@pytest.mark.asyncio
async def test_database_outage_is_retryable_503(
    client: httpx.AsyncClient, session: AsyncSession, monkeypatch
):
    a, b, a_opt, b_opt = await _seed(session)

    async def broken_commit(self):
        raise sa_exc.OperationalError("COMMIT", {}, Exception("could not connect to server"))

    monkeypatch.setattr(AsyncSession, "commit", broken_commit)
    r = await client.post(
        "/checkout",
        json={
            "items": _cart(a, b),
            "logistics_choice": {str(a): a_opt, str(b): b_opt},
            "delivery_address": "12 Allen Avenue, Ikeja",
        },
        headers=bearer(BUYER),
    )
    monkeypatch.undo()

    assert r.status_code == 503, r.text
    assert r.headers["Retry-After"] == "1"
    body = r.json()
    assert body["error_code"] == "persistence_unavailable"
    assert body["context"]["retryable"] is True

    r = await client.get("/orders", headers=bearer(BUYER))
    assert r.json() == []
