# jara/metrics.py
from __future__ import annotations

import os

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, generate_latest, multiprocess

ORDERS_CREATED = Counter("jara_orders_created_total", "Orders persisted by checkout")
CHECKOUT_REJECTED = Counter("jara_checkout_rejected_total", "Rejected checkouts", ["code"])
TRANSITIONS = Counter("jara_order_transitions_total", "Accepted order status changes", ["to_status"])
TRANSITIONS_REJECTED = Counter(
    "jara_order_transition_rejected_total", "Rejected order status changes", ["code"]
)
PAYMENTS = Counter("jara_payments_captured_total", "Payment capture outcomes", ["result"])

router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    """
    Single process: export the default REGISTRY.
    Multi process (PROMETHEUS_MULTIPROC_DIR set): merge the shards into a temporary registry.
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
