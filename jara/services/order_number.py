# jara/services/order_number.py
from __future__ import annotations

import secrets
import string
import time
from typing import Optional

_B36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def generate_order_number(prefix: str = "ORD", *, now_ms: Optional[int] = None) -> str:
    """
    ORD-<epoch millis, base36>-<4 random base36 chars>, e.g. ORD-MB2K9X1Q-7F3A.
    Uniqueness is finally enforced by uq on orders.order_number; callers retry on collision.
    """
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_B36) for _ in range(4))
    return f"{prefix}-{_base36(ts)}-{suffix}"
