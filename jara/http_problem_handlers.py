# jara/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from jara.api.problem import make_problem
from jara.services.order_errors import MissingLogisticsSelection, OrderDomainError

logger = logging.getLogger("jara")


def _new_trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _req_context(req: Request) -> Dict[str, Any]:
    return {"path": getattr(req.url, "path", ""), "method": req.method}


def _problem_from_http_exc(req: Request, exc: HTTPException) -> Dict[str, Any]:
    """
    HTTPException.detail -> Problem shape. Accepts:
    - an existing Problem dict ({"error_code","message",...})
    - str / anything else (wrapped as http_error)
    """
    status_code = int(exc.status_code)
    ctx = _req_context(req)
    d = exc.detail

    if isinstance(d, dict) and "error_code" in d and "message" in d:
        out = dict(d)
        out.setdefault("http_status", status_code)
        out.setdefault("trace_id", _new_trace_id())
        merged = dict(ctx)
        if isinstance(out.get("context"), dict):
            merged.update(out["context"])
        out["context"] = merged
        return out

    msg = str(d) if d is not None else "request rejected"
    return make_problem(
        status_code=status_code,
        error_code="http_error",
        message=msg,
        context=ctx,
        details=[{"type": "state", "reason": msg}],
        trace_id=_new_trace_id(),
    )


def _problem_from_domain_error(req: Request, exc: OrderDomainError) -> Dict[str, Any]:
    ctx = _req_context(req)
    ctx.update(exc.context)

    details: List[Dict[str, Any]] = []
    if isinstance(exc, MissingLogisticsSelection):
        details = [
            {"type": "logistics", "reason": "no option selected", "store_id": sid} for sid in exc.store_ids
        ]

    return make_problem(
        status_code=exc.status,
        error_code=exc.code,
        message=exc.message,
        context=ctx,
        details=details,
        trace_id=_new_trace_id(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = _new_trace_id()
        logger.exception("UNHANDLED_EXC[%s]: %s", trace_id, exc)
        content = make_problem(
            status_code=500,
            error_code="internal_error",
            message="internal error, please retry later",
            context=_req_context(req),
            trace_id=trace_id,
        )
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(OrderDomainError)
    async def _domain_exc(req: Request, exc: OrderDomainError):
        content = _problem_from_domain_error(req, exc)
        if exc.status >= 500:
            logger.error("%s[%s]: %s", exc.code, content.get("trace_id"), exc.message)
        headers = {"Retry-After": "1"} if exc.context.get("retryable") else None
        return JSONResponse(status_code=exc.status, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        details: List[Dict[str, Any]] = []
        for e in exc.errors():
            if not isinstance(e, dict):
                continue
            loc = [str(p) for p in (e.get("loc") or ()) if p != "body"]
            details.append(
                {
                    "type": "validation",
                    "path": ".".join(loc),
                    "reason": str(e.get("msg") or e.get("type") or "invalid"),
                }
            )

        content = make_problem(
            status_code=422,
            error_code="request_validation_error",
            message="invalid request",
            context=_req_context(req),
            details=details,
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(HTTPException)
    async def _http_exc(req: Request, exc: HTTPException):
        content = _problem_from_http_exc(req, exc)
        return JSONResponse(status_code=int(exc.status_code), content=content, headers=exc.headers)
