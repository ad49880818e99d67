# jara/api/routers/stores.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.deps import get_current_actor, get_session
from jara.api.problem import raise_problem
from jara.core.security import Actor
from jara.models.enums import OrderStatus
from jara.schemas.logistics import LogisticsOptionIn, LogisticsOptionOut
from jara.schemas.order import OrderOut
from jara.schemas.store import StoreCreateIn, StoreOut
from jara.services.logistics_service import LogisticsService
from jara.services.order_query_service import OrderQueryService
from jara.services.store_service import StoreService

router = APIRouter(prefix="/stores", tags=["stores"])


@router.post("", response_model=StoreOut, status_code=status.HTTP_201_CREATED)
async def create_store(
    payload: StoreCreateIn,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    store = await StoreService.open_store(session, actor, name=payload.name, slug=payload.slug)
    return StoreOut.model_validate(store)


@router.get("", response_model=List[StoreOut])
async def list_my_stores(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    rows = await StoreService.list_owned(session, actor.user_id)
    return [StoreOut.model_validate(s) for s in rows]


@router.get("/{store_id}/orders", response_model=List[OrderOut])
async def list_store_orders(
    store_id: int,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    rows = await OrderQueryService.list_for_store(
        session, actor, store_id=store_id, status=status_filter, limit=limit, offset=offset
    )
    return [OrderOut.model_validate(o) for o in rows]


# ---------------------------------------------------------------------------
# logistics options of one store (owner only)
# ---------------------------------------------------------------------------


@router.get("/{store_id}/logistics", response_model=List[LogisticsOptionOut])
async def list_store_logistics(
    store_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    rows = await LogisticsService.list_for_store(session, actor, store_id)
    return [LogisticsOptionOut.model_validate(o) for o in rows]


@router.post(
    "/{store_id}/logistics",
    response_model=LogisticsOptionOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_store_logistics(
    store_id: int,
    payload: LogisticsOptionIn,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    opt = await LogisticsService.create_option(
        session,
        actor,
        store_id=store_id,
        type=payload.type,
        location_name=payload.location_name,
        city=payload.city,
        delivery_fee=payload.delivery_fee,
        delivery_timeline=payload.delivery_timeline,
    )
    return LogisticsOptionOut.model_validate(opt)


@router.post("/{store_id}/logistics/{option_id}/deactivate", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_store_logistics(
    store_id: int,
    option_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    ok = await LogisticsService.deactivate_option(session, actor, store_id=store_id, option_id=option_id)
    if not ok:
        _option_not_found(store_id, option_id)


@router.delete("/{store_id}/logistics/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store_logistics(
    store_id: int,
    option_id: int,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    ok = await LogisticsService.delete_option(session, actor, store_id=store_id, option_id=option_id)
    if not ok:
        _option_not_found(store_id, option_id)


def _option_not_found(store_id: int, option_id: int) -> None:
    raise_problem(
        status_code=404,
        error_code="logistics_option_not_found",
        message=f"logistics option {option_id} not found in store {store_id}",
        context={"store_id": store_id, "logistics_option_id": option_id},
    )
