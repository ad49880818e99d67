from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.audit import audit_rejection
from jara.core.security import Actor
from jara.models.enums import OrderStatus
from jara.models.order import Order
from jara.services.order_errors import OrderNotFound, Unauthorized
from jara.services.store_service import StoreService


class OrderQueryService:
    """
    Read side over orders. Buyers see their own orders, store owners the orders of their
    stores, admins everything; all of them only observe.
    """

    @staticmethod
    async def list_for_buyer(
        session: AsyncSession, actor: Actor, *, limit: int = 50, offset: int = 0
    ) -> List[Order]:
        rows = await session.execute(
            select(Order)
            .where(Order.buyer_id == actor.user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(rows.scalars().all())

    @staticmethod
    async def list_for_store(
        session: AsyncSession,
        actor: Actor,
        *,
        store_id: int,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Order]:
        await StoreService.require_owner(session, actor, store_id, action="list_store_orders")
        stmt = select(Order).where(Order.store_id == int(store_id))
        if status is not None:
            stmt = stmt.where(Order.status == OrderStatus(status))
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset)
        rows = await session.execute(stmt)
        return list(rows.scalars().all())

    @staticmethod
    async def get_for_actor(session: AsyncSession, actor: Actor, order_id: int) -> Order:
        order = (
            await session.execute(
                select(Order).where(Order.id == int(order_id)).execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFound(order_id)

        owner_id = order.store.owner_id if order.store is not None else None
        if actor.is_admin or actor.user_id in (order.buyer_id, owner_id):
            return order

        audit_rejection(action="view_order", actor_id=actor.user_id, role=actor.role, target=f"order:{order_id}")
        raise Unauthorized(action="view_order", actor_id=actor.user_id, target=f"order:{order_id}")
