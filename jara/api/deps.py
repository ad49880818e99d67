# jara/api/deps.py
from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.problem import raise_401
from jara.core.security import Actor, actor_from_token
from jara.db.session import get_session as _get_session

_bearer = HTTPBearer(auto_error=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request."""
    async for session in _get_session():
        yield session


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Actor:
    """
    Strict current actor:

    - Authorization: Bearer <token> is required
    - invalid / expired token, or a token without `sub` -> 401
    """
    token = (credentials.credentials if credentials else "").strip()
    if not token:
        raise_401("Not authenticated")

    actor = actor_from_token(token)
    if actor is None:
        raise_401("Invalid or expired token")
    return actor
