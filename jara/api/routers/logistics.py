# jara/api/routers/logistics.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.deps import get_session
from jara.schemas.logistics import LogisticsOptionOut
from jara.services.logistics_service import LogisticsService

router = APIRouter(prefix="/logistics", tags=["logistics"])


@router.get("", response_model=List[LogisticsOptionOut])
async def list_active_logistics(
    store_id: List[int] = Query([], description="repeat for several stores"),
    session: AsyncSession = Depends(get_session),
):
    """Active options of the given stores, as offered by the checkout picker."""
    rows = await LogisticsService.list_active_for_stores(session, store_id)
    return [LogisticsOptionOut.model_validate(o) for o in rows]
