# jara/api/routers/payments.py
from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from jara.api.deps import get_session
from jara.api.problem import raise_401
from jara.core.audit import new_trace
from jara.core.config import get_settings
from jara.schemas.payment import PaymentWebhookIn, PaymentWebhookOut
from jara.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])

log = logging.getLogger("jara.payments")


@router.post("/webhook", response_model=PaymentWebhookOut)
async def payment_webhook(
    payload: PaymentWebhookIn,
    verif_hash: Optional[str] = Header(None, alias="verif-hash"),
    session: AsyncSession = Depends(get_session),
):
    """
    Gateway notification.

    - verif-hash must equal PAYMENT_WEBHOOK_SECRET when it is configured (401 otherwise)
    - only successful charge events capture; anything else is acknowledged and ignored
    - tx_ref is the order number, the gateway transaction id becomes payment_reference
    """
    secret = get_settings().PAYMENT_WEBHOOK_SECRET
    if secret and not hmac.compare_digest(str(verif_hash or ""), secret):
        log.warning("payment webhook rejected: bad verif-hash")
        raise_401("Invalid webhook signature")

    tx = payload.transaction()
    if not payload.is_charge_event() or str(tx.status or "").lower() != "successful" or not tx.tx_ref:
        log.info("payment webhook ignored event=%s status=%s", payload.event or payload.event_type, tx.status)
        return PaymentWebhookOut(received=True, result="ignored", order_number=tx.tx_ref)

    r = await PaymentService.capture(
        session,
        order_number=tx.tx_ref,
        payment_reference=str(tx.id) if tx.id is not None else tx.tx_ref,
        amount=tx.amount,
        trace=new_trace("webhook:payment"),
    )
    return PaymentWebhookOut(received=True, result=r.result, order_number=r.order_number)
