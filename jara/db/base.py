# jara/db/base.py
from __future__ import annotations

import importlib
import logging

from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("jara.models")


class Base(DeclarativeBase):
    """The single ORM Base."""

    pass


_INITIALIZED: bool = False

# string relationship targets must be registered before configure_mappers()
_MODEL_MODULES = [
    "jara.models.store",
    "jara.models.store_logistics",
    "jara.models.order",
    "jara.models.order_item",
]


def init_models(*, force: bool = False) -> None:
    """
    Import every model module and configure mappers once.
    Alembic env.py and the test fixtures call this before touching Base.metadata.
    """
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    for mod in _MODEL_MODULES:
        importlib.import_module(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (%d modules)", len(_MODEL_MODULES))
