# jara/services/payment_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.audit import TraceContext, ensure_trace
from jara.metrics import PAYMENTS
from jara.models.enums import OrderStatus
from jara.models.order import Order
from jara.services.checkout_types import money
from jara.services.order_errors import (
    TRANSIENT_DB_ERRORS,
    InvalidTransition,
    OrderNotFound,
    PersistenceUnavailable,
)
from jara.services.order_fulfillment import compare_and_set_status, current_status

log = logging.getLogger("jara.payments")

AMOUNT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class CaptureResult:
    order_id: int
    order_number: str
    result: str  # captured | already_paid
    status: OrderStatus


class PaymentService:
    """
    Entry point of the payment collaborator: the only path from pending to paid.

    The gateway identifies an order by its order_number (tx_ref). Capture is safe to replay:
    an order that is already paid, or further along, is acknowledged without writing.
    """

    @staticmethod
    async def capture(
        session: AsyncSession,
        *,
        order_number: str,
        payment_reference: str,
        amount: Any = None,
        trace: Optional[TraceContext] = None,
    ) -> CaptureResult:
        trace = ensure_trace(trace, "payment")
        try:
            order = (
                await session.execute(
                    select(Order)
                    .where(Order.order_number == order_number)
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
        except TRANSIENT_DB_ERRORS as e:
            await session.rollback()
            raise PersistenceUnavailable("payment_capture") from e

        if order is None:
            PAYMENTS.labels("order_not_found").inc()
            raise OrderNotFound(order_number)

        # plain values: the instance is expired by any rollback below
        order_id = order.id
        order_total = order.total
        status = OrderStatus(order.status)

        if amount is not None and abs(money(amount) - money(order_total)) > AMOUNT_TOLERANCE:
            log.warning(
                "payment amount mismatch order=%s db_total=%s paid=%s trace=%s",
                order_number,
                order_total,
                amount,
                trace.trace_id,
            )

        if status == OrderStatus.PENDING:
            try:
                ok = await compare_and_set_status(
                    session,
                    order_id=order_id,
                    expected=OrderStatus.PENDING,
                    new=OrderStatus.PAID,
                    values={"payment_reference": str(payment_reference)},
                )
                if ok:
                    await session.commit()
                    PAYMENTS.labels("captured").inc()
                    log.info(
                        "payment captured order=%s ref=%s trace=%s",
                        order_number,
                        payment_reference,
                        trace.trace_id,
                    )
                    return CaptureResult(order_id, order_number, "captured", OrderStatus.PAID)
                # somebody else moved it first
                await session.rollback()
                status = await current_status(session, order_id) or status
            except TRANSIENT_DB_ERRORS as e:
                await session.rollback()
                raise PersistenceUnavailable("payment_capture") from e

        if status == OrderStatus.CANCELLED:
            PAYMENTS.labels("rejected").inc()
            log.warning(
                "payment for cancelled order=%s ref=%s trace=%s", order_number, payment_reference, trace.trace_id
            )
            raise InvalidTransition(order_id=order_id, current=str(status), requested=str(OrderStatus.PAID))

        PAYMENTS.labels("already_paid").inc()
        log.info("payment replay order=%s status=%s trace=%s", order_number, status, trace.trace_id)
        return CaptureResult(order_id, order_number, "already_paid", status)
