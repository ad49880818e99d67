from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.audit import TraceContext, audit_rejection
from jara.core.security import Actor
from jara.models.enums import ActorRole, StoreStatus
from jara.models.store import Store
from jara.services.order_errors import StoreNotFound, StoreSlugTaken, Unauthorized

log = logging.getLogger("jara.stores")


class StoreService:
    """
    Store records as far as the order core needs them.

    - create_store:  register a store for the calling owner
    - get_store:     load by id or raise StoreNotFound
    - list_owned:    the stores a user owns, oldest first
    - require_owner: load and check that the actor owns it (admins pass)

    Verification / approval of stores is handled elsewhere.
    """

    @staticmethod
    async def create_store(
        session: AsyncSession,
        *,
        owner_id: str,
        name: str,
        slug: str,
        status: StoreStatus = StoreStatus.ACTIVE,
    ) -> Store:
        store = Store(owner_id=owner_id, name=name.strip(), slug=slug.strip().lower(), status=status)
        session.add(store)
        await session.flush()
        log.info("store created id=%s slug=%s owner=%s", store.id, store.slug, owner_id)
        return store

    @staticmethod
    async def open_store(session: AsyncSession, actor: Actor, *, name: str, slug: str) -> Store:
        """Store owners (and admins) register a store owned by themselves; commits."""
        if actor.role not in (ActorRole.STORE_OWNER, ActorRole.ADMIN):
            audit_rejection(action="create_store", actor_id=actor.user_id, role=actor.role, target=f"slug:{slug}")
            raise Unauthorized(action="create_store", actor_id=actor.user_id, target=f"slug:{slug}")

        norm = slug.strip().lower()
        taken = await session.execute(select(Store.id).where(Store.slug == norm))
        if taken.scalar_one_or_none() is not None:
            raise StoreSlugTaken(norm)

        store = await StoreService.create_store(session, owner_id=actor.user_id, name=name, slug=norm)
        await session.commit()
        return store

    @staticmethod
    async def get_store(session: AsyncSession, store_id: int) -> Store:
        store = await session.get(Store, int(store_id))
        if store is None:
            raise StoreNotFound(int(store_id))
        return store

    @staticmethod
    async def list_owned(session: AsyncSession, owner_id: str) -> List[Store]:
        rows = await session.execute(
            select(Store).where(Store.owner_id == owner_id).order_by(Store.id)
        )
        return list(rows.scalars().all())

    @staticmethod
    async def require_owner(
        session: AsyncSession,
        actor: Actor,
        store_id: int,
        *,
        action: str,
        trace: Optional[TraceContext] = None,
    ) -> Store:
        store = await StoreService.get_store(session, store_id)
        if actor.is_admin or store.owner_id == actor.user_id:
            return store
        audit_rejection(
            action=action, actor_id=actor.user_id, role=actor.role, target=f"store:{store_id}", trace=trace
        )
        raise Unauthorized(action=action, actor_id=actor.user_id, target=f"store:{store_id}")
