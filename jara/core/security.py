# jara/core/security.py
"""
Identity of the caller, as issued by the hosted auth provider.

- Bearer tokens are HS256 JWTs signed with JWT_SECRET (PyJWT); alg=none is never accepted.
- The core trusts the decoded identity and does not re-verify credentials.
- Non-dev environments must not run with a development JWT_SECRET.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from jara.core.config import AppSettings, get_settings
from jara.models.enums import ActorRole

_JWT_ALG = "HS256"

_DEV_SECRETS = {
    "",
    "dev-temp-secret",
    "dev-secret-change-me",
}

# role claim of the auth provider -> role inside the order core
_ROLE_CLAIMS = {
    "customer": ActorRole.BUYER,
    "buyer": ActorRole.BUYER,
    "brand_admin": ActorRole.STORE_OWNER,
    "store_owner": ActorRole.STORE_OWNER,
    "platform_admin": ActorRole.ADMIN,
    "admin": ActorRole.ADMIN,
}


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: ActorRole = ActorRole.BUYER

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def assert_secure_settings(settings: Optional[AppSettings] = None) -> None:
    s = settings or get_settings()
    if s.ENV != "dev" and (not s.JWT_SECRET or s.JWT_SECRET in _DEV_SECRETS):
        raise RuntimeError(
            "SECURITY ERROR: JWT_SECRET is not properly configured.\n"
            f"ENV = {s.ENV!r}\n"
            "Set a strong JWT_SECRET via environment variable or .env file."
        )


def create_access_token(data: Dict[str, Any], *, secret: Optional[str] = None) -> str:
    """Only used by tooling and tests; production tokens come from the auth provider."""
    return jwt.encode(dict(data), secret or get_settings().JWT_SECRET, algorithm=_JWT_ALG)


def decode_access_token(token: str, *, secret: Optional[str] = None) -> Optional[Dict[str, Any]]:
    try:
        out = jwt.decode(
            token,
            secret or get_settings().JWT_SECRET,
            algorithms=[_JWT_ALG],
            options={"verify_aud": False},
        )
    except jwt.PyJWTError:
        return None
    return out if isinstance(out, dict) else None


def role_from_claims(claims: Dict[str, Any]) -> ActorRole:
    raw = claims.get("role")
    meta = claims.get("app_metadata")
    if isinstance(meta, dict) and meta.get("role"):
        raw = meta.get("role")
    return _ROLE_CLAIMS.get(str(raw or "").lower(), ActorRole.BUYER)


def actor_from_token(token: str) -> Optional[Actor]:
    claims = decode_access_token(token)
    if not claims:
        return None
    sub = str(claims.get("sub") or "").strip()
    if not sub:
        return None
    return Actor(user_id=sub, role=role_from_claims(claims))
