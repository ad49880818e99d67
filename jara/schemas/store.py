from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from jara.models.enums import StoreStatus


class StoreCreateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(min_length=1, max_length=256)]
    slug: Annotated[str, Field(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9][A-Za-z0-9_-]*$")]


class StoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: int
    owner_id: str
    name: str
    slug: str
    status: StoreStatus
