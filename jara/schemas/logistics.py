from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field

from jara.models.enums import LogisticsType


class _Base(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class LogisticsOptionIn(_Base):
    type: LogisticsType
    location_name: Annotated[str, Field(min_length=1, max_length=255)]
    city: Annotated[str, Field(min_length=1, max_length=128)]
    delivery_fee: Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)] = Decimal("0")
    delivery_timeline: Annotated[Optional[str], Field(default=None, max_length=128)] = None


class LogisticsOptionOut(_Base):
    id: int
    store_id: int
    type: LogisticsType
    location_name: str
    city: str
    delivery_fee: Decimal
    delivery_timeline: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
