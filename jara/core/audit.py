# jara/core/audit.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import uuid4

audit_log = logging.getLogger("jara.audit")


@dataclass
class TraceContext:
    """
    Lightweight trace context:

    - trace_id: uuid4 hex
    - source: where it was created, e.g. 'http:/checkout', 'webhook:payment'
    """

    trace_id: str
    source: Optional[str] = None


def new_trace(source: str) -> TraceContext:
    return TraceContext(trace_id=uuid4().hex, source=source)


def ensure_trace(ctx: Optional[TraceContext], source: str) -> TraceContext:
    return ctx if ctx is not None else new_trace(source)


def audit_rejection(
    *,
    action: str,
    actor_id: Optional[str],
    role: Any = None,
    target: Any = None,
    trace: Optional[TraceContext] = None,
) -> None:
    """Rejected authorization attempts are always kept on the audit logger."""
    audit_log.warning(
        "UNAUTHORIZED action=%s actor=%s role=%s target=%s trace=%s",
        action,
        actor_id or "-",
        getattr(role, "value", role) or "-",
        target if target is not None else "-",
        trace.trace_id if trace else "-",
    )
