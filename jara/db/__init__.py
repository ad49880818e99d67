# jara/db/__init__.py
from jara.db.base import Base, init_models
from jara.db.session import AsyncSessionLocal, async_engine, get_session

__all__ = ["Base", "init_models", "AsyncSessionLocal", "async_engine", "get_session"]
