from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from jara.models.enums import LogisticsType
from jara.services.logistics_service import LogisticsService
from jara.services.order_errors import InvalidLogisticsFee, StoreNotFound, Unauthorized
from tests.helpers.auth import ADMIN, OWNER_A, OWNER_B
from tests.helpers.orders import seed_option, seed_store


@pytest.mark.asyncio
async def test_owner_creates_and_lists_options(session: AsyncSession):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    store_id = store.id

    opt = await LogisticsService.create_option(
        session,
        OWNER_A,
        store_id=store_id,
        type=LogisticsType.PICKUP,
        location_name="  Yaba market stall 4 ",
        city="Lagos",
        delivery_fee=Decimal("0"),
    )
    assert opt.is_active is True
    assert opt.location_name == "Yaba market stall 4"
    assert opt.delivery_fee == Decimal("0.00")

    rows = await LogisticsService.list_for_store(session, OWNER_A, store_id)
    assert [o.id for o in rows] == [opt.id]


@pytest.mark.asyncio
async def test_negative_fee_is_rejected(session: AsyncSession):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    with pytest.raises(InvalidLogisticsFee) as ei:
        await LogisticsService.create_option(
            session,
            OWNER_A,
            store_id=store.id,
            type=LogisticsType.DELIVERY,
            location_name="Island",
            city="Lagos",
            delivery_fee=Decimal("-1"),
        )
    assert ei.value.code == "invalid_logistics_fee"
    assert ei.value.status == 422


@pytest.mark.asyncio
async def test_other_owner_cannot_manage_options(session: AsyncSession):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    opt = await seed_option(session, store.id, fee="100")

    with pytest.raises(Unauthorized):
        await LogisticsService.list_for_store(session, OWNER_B, store.id)
    with pytest.raises(Unauthorized):
        await LogisticsService.deactivate_option(session, OWNER_B, store_id=store.id, option_id=opt.id)
    with pytest.raises(Unauthorized):
        await LogisticsService.delete_option(session, OWNER_B, store_id=store.id, option_id=opt.id)


@pytest.mark.asyncio
async def test_admin_may_manage_any_store(session: AsyncSession):
    store = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    await seed_option(session, store.id)
    rows = await LogisticsService.list_for_store(session, ADMIN, store.id)
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_unknown_store(session: AsyncSession):
    with pytest.raises(StoreNotFound):
        await LogisticsService.list_for_store(session, OWNER_A, 9999)


@pytest.mark.asyncio
async def test_deactivated_and_deleted_options_leave_the_checkout_picker(session: AsyncSession):
    a = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    b = await seed_store(session, owner_id=OWNER_B.user_id, slug="store-b")
    a_id, b_id = a.id, b.id
    a1 = await seed_option(session, a_id, fee="500")
    a2 = await seed_option(session, a_id, fee="100")
    b1 = await seed_option(session, b_id, fee="0")
    a1_id, a2_id, b1_id = a1.id, a2.id, b1.id

    active = await LogisticsService.list_active_for_stores(session, [a_id, b_id])
    assert [o.id for o in active] == [a2_id, a1_id, b1_id]

    assert await LogisticsService.deactivate_option(session, OWNER_A, store_id=a_id, option_id=a1_id)
    assert await LogisticsService.delete_option(session, OWNER_B, store_id=b_id, option_id=b1_id)

    active = await LogisticsService.list_active_for_stores(session, [a_id, b_id])
    assert [o.id for o in active] == [a2_id]


@pytest.mark.asyncio
async def test_option_ids_are_scoped_to_their_store(session: AsyncSession):
    a = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-a")
    b = await seed_store(session, owner_id=OWNER_A.user_id, slug="store-b")
    b_opt = await seed_option(session, b.id)

    assert not await LogisticsService.deactivate_option(session, OWNER_A, store_id=a.id, option_id=b_opt.id)


@pytest.mark.asyncio
async def test_no_store_ids_no_options(session: AsyncSession):
    assert await LogisticsService.list_active_for_stores(session, []) == []
