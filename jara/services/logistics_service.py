# jara/services/logistics_service.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.security import Actor
from jara.models.enums import LogisticsType
from jara.models.store_logistics import StoreLogistics
from jara.services.checkout_types import money
from jara.services.order_errors import InvalidLogisticsFee
from jara.services.store_service import StoreService

log = logging.getLogger("jara.logistics")


class LogisticsService:
    """
    Pickup / delivery options of a store.

    Options are read-only from the checkout's point of view: orders copy the fee and keep
    only the option id, so deactivating or deleting an option never changes an order.
    """

    # ------------------------------------------------------------------
    # checkout-side reads
    # ------------------------------------------------------------------
    @staticmethod
    async def get_by_ids(session: AsyncSession, option_ids: Iterable[int]) -> Dict[int, StoreLogistics]:
        ids = sorted({int(x) for x in option_ids})
        if not ids:
            return {}
        rows = await session.execute(select(StoreLogistics).where(StoreLogistics.id.in_(ids)))
        return {opt.id: opt for opt in rows.scalars().all()}

    @staticmethod
    async def list_active_for_stores(
        session: AsyncSession, store_ids: Iterable[int]
    ) -> List[StoreLogistics]:
        ids = sorted({int(x) for x in store_ids})
        if not ids:
            return []
        rows = await session.execute(
            select(StoreLogistics)
            .where(StoreLogistics.store_id.in_(ids), StoreLogistics.is_active.is_(True))
            .order_by(StoreLogistics.store_id, StoreLogistics.delivery_fee, StoreLogistics.id)
        )
        return list(rows.scalars().all())

    # ------------------------------------------------------------------
    # store-owner management
    # ------------------------------------------------------------------
    @staticmethod
    async def list_for_store(session: AsyncSession, actor: Actor, store_id: int) -> List[StoreLogistics]:
        await StoreService.require_owner(session, actor, store_id, action="list_logistics")
        rows = await session.execute(
            select(StoreLogistics)
            .where(StoreLogistics.store_id == int(store_id))
            .order_by(StoreLogistics.id)
        )
        return list(rows.scalars().all())

    @staticmethod
    async def create_option(
        session: AsyncSession,
        actor: Actor,
        *,
        store_id: int,
        type: LogisticsType,
        location_name: str,
        city: str,
        delivery_fee: Decimal,
        delivery_timeline: Optional[str] = None,
    ) -> StoreLogistics:
        await StoreService.require_owner(session, actor, store_id, action="create_logistics")
        fee = money(delivery_fee)
        if fee < 0:
            raise InvalidLogisticsFee(fee)

        opt = StoreLogistics(
            store_id=int(store_id),
            type=LogisticsType(type),
            location_name=location_name.strip(),
            city=city.strip(),
            delivery_fee=fee,
            delivery_timeline=(delivery_timeline or "").strip() or None,
            is_active=True,
        )
        session.add(opt)
        await session.flush()
        await session.commit()
        await session.refresh(opt)
        log.info("logistics option created id=%s store=%s fee=%s", opt.id, store_id, fee)
        return opt

    @staticmethod
    async def deactivate_option(
        session: AsyncSession, actor: Actor, *, store_id: int, option_id: int
    ) -> bool:
        await StoreService.require_owner(session, actor, store_id, action="deactivate_logistics")
        res = await session.execute(
            update(StoreLogistics)
            .where(StoreLogistics.id == int(option_id), StoreLogistics.store_id == int(store_id))
            .values(is_active=False)
        )
        await session.commit()
        return (res.rowcount or 0) > 0

    @staticmethod
    async def delete_option(session: AsyncSession, actor: Actor, *, store_id: int, option_id: int) -> bool:
        await StoreService.require_owner(session, actor, store_id, action="delete_logistics")
        res = await session.execute(
            delete(StoreLogistics).where(
                StoreLogistics.id == int(option_id), StoreLogistics.store_id == int(store_id)
            )
        )
        await session.commit()
        log.info("logistics option deleted id=%s store=%s", option_id, store_id)
        return (res.rowcount or 0) > 0
