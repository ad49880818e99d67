# jara/services/checkout_service.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jara.core.audit import TraceContext, audit_rejection, ensure_trace
from jara.core.config import get_settings
from jara.core.security import Actor
from jara.metrics import CHECKOUT_REJECTED, ORDERS_CREATED
from jara.models.enums import OrderStatus
from jara.models.order import Order
from jara.models.order_item import OrderItem
from jara.models.store_logistics import StoreLogistics
from jara.services.checkout_types import (
    CartLine,
    CheckoutQuote,
    CheckoutResult,
    QuoteLine,
    StoreGroup,
    StoreQuote,
    money,
)
from jara.services.jara_bonus import jara_quantity
from jara.services.logistics_service import LogisticsService
from jara.services.order_errors import (
    TRANSIENT_DB_ERRORS,
    EmptyCart,
    InvalidCartLine,
    LogisticsOptionUnavailable,
    MissingAddress,
    MissingLogisticsSelection,
    OrderDomainError,
    PersistenceUnavailable,
    Unauthorized,
)
from jara.services.order_number import generate_order_number

log = logging.getLogger("jara.checkout")

ORDER_NUMBER_MAX_RETRIES = 5


def group_by_store(items: Iterable[CartLine]) -> List[StoreGroup]:
    """Partition cart lines by store, keeping the order in which stores first appear."""
    groups: Dict[int, StoreGroup] = {}
    for line in items:
        g = groups.get(line.store_id)
        if g is None:
            g = groups[line.store_id] = StoreGroup(store_id=line.store_id, store_name=line.store_name)
        g.lines.append(line)
    return list(groups.values())


def check_lines(items: Iterable[CartLine]) -> None:
    """quantity >= 1, unit_price >= 0, bonus quantities >= 0; raises InvalidCartLine."""
    for ln in items:
        if int(ln.quantity) < 1:
            raise InvalidCartLine(product_id=ln.product_id, field="quantity", value=ln.quantity)
        if money(ln.unit_price) < 0:
            raise InvalidCartLine(product_id=ln.product_id, field="unit_price", value=ln.unit_price)
        for name in ("jara_buy_quantity", "jara_get_quantity"):
            if int(getattr(ln, name) or 0) < 0:
                raise InvalidCartLine(product_id=ln.product_id, field=name, value=getattr(ln, name))


def is_order_number_collision(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: orders.order_number"
    # postgres: duplicate key value violates unique constraint "ix_orders_order_number"
    return "order_number" in str(exc.orig)


def _check_option(store_id: int, option_id: int, opt: Optional[StoreLogistics]) -> StoreLogistics:
    if opt is None:
        raise LogisticsOptionUnavailable(store_id=store_id, option_id=option_id, reason="not_found")
    if opt.store_id != store_id:
        raise LogisticsOptionUnavailable(store_id=store_id, option_id=option_id, reason="store_mismatch")
    if not opt.is_active:
        raise LogisticsOptionUnavailable(store_id=store_id, option_id=option_id, reason="inactive")
    return opt


def _quote_lines(group: StoreGroup) -> List[QuoteLine]:
    return [
        QuoteLine(
            product_id=ln.product_id,
            quantity=ln.quantity,
            jara_quantity=jara_quantity(ln.quantity, ln.jara_buy_quantity, ln.jara_get_quantity),
            unit_price=money(ln.unit_price),
            total_price=ln.line_total,
        )
        for ln in group.lines
    ]


class CheckoutService:
    """
    Order splitter: one multi-store cart -> one pending order per store.

    - quote():       grouping, subtotals, fees and bonus units without writing anything
    - place_orders(): validate everything up front, then persist every store's
                      Order + OrderItems inside a single transaction (all-or-nothing)

    Stock counters are not touched here.
    """

    @staticmethod
    async def quote(
        session: AsyncSession,
        *,
        items: List[CartLine],
        logistics_choice: Mapping[int, int],
    ) -> CheckoutQuote:
        if not items:
            raise EmptyCart()
        check_lines(items)

        groups = group_by_store(items)
        choice = {int(k): int(v) for k, v in (logistics_choice or {}).items()}
        options = await LogisticsService.get_by_ids(
            session, [choice[g.store_id] for g in groups if g.store_id in choice]
        )

        stores: List[StoreQuote] = []
        missing: List[int] = []
        for g in groups:
            option_id = choice.get(g.store_id)
            fee = Decimal("0.00")
            if option_id is None:
                missing.append(g.store_id)
            else:
                fee = money(_check_option(g.store_id, option_id, options.get(option_id)).delivery_fee)
            stores.append(
                StoreQuote(
                    store_id=g.store_id,
                    store_name=g.store_name,
                    lines=_quote_lines(g),
                    subtotal=g.subtotal,
                    logistics_option_id=option_id,
                    logistics_fee=fee,
                )
            )
        return CheckoutQuote(stores=stores, missing_logistics_store_ids=missing)

    @staticmethod
    async def place_orders(
        session: AsyncSession,
        *,
        actor: Actor,
        items: List[CartLine],
        logistics_choice: Mapping[int, int],
        delivery_address: Optional[str],
        trace: Optional[TraceContext] = None,
        order_number_factory: Optional[Callable[[], str]] = None,
    ) -> CheckoutResult:
        """
        Returns the created order ids in store-group order.

        Failure modes (nothing is written in any of them):
          Unauthorized               anonymous caller
          EmptyCart                  no lines
          InvalidCartLine            quantity < 1, negative price or bonus quantities
          MissingLogisticsSelection  a store in the cart has no chosen option
          MissingAddress             blank delivery address
          LogisticsOptionUnavailable chosen option missing / inactive / of another store
          PersistenceUnavailable     database failure, or order-number collisions exhausted

        Any other IntegrityError is not retried and propagates after the rollback.
        """
        trace = ensure_trace(trace, "checkout")
        try:
            return await CheckoutService._place_orders(
                session,
                actor=actor,
                items=items,
                logistics_choice=logistics_choice,
                delivery_address=delivery_address,
                trace=trace,
                order_number_factory=order_number_factory,
            )
        except OrderDomainError as e:
            CHECKOUT_REJECTED.labels(e.code).inc()
            raise

    @staticmethod
    async def _place_orders(
        session: AsyncSession,
        *,
        actor: Actor,
        items: List[CartLine],
        logistics_choice: Mapping[int, int],
        delivery_address: Optional[str],
        trace: TraceContext,
        order_number_factory: Optional[Callable[[], str]],
    ) -> CheckoutResult:
        if not (actor.user_id or "").strip():
            audit_rejection(action="checkout", actor_id=actor.user_id, role=actor.role, trace=trace)
            raise Unauthorized(action="checkout", actor_id=actor.user_id)

        if not items:
            raise EmptyCart()

        # 1) validation stage: sane lines, every store needs a choice, the address must be present
        check_lines(items)
        groups = group_by_store(items)
        choice = {int(k): int(v) for k, v in (logistics_choice or {}).items()}
        missing = [g.store_id for g in groups if g.store_id not in choice]
        if missing:
            raise MissingLogisticsSelection(missing)

        address = (delivery_address or "").strip()
        if not address:
            raise MissingAddress()

        if order_number_factory is None:
            prefix = get_settings().ORDER_NUMBER_PREFIX
            order_number_factory = lambda: generate_order_number(prefix)  # noqa: E731

        # 2) commit stage: resolve options and write all groups in one transaction;
        #    a unique-violation on order_number rolls everything back and retries
        for attempt in range(1, ORDER_NUMBER_MAX_RETRIES + 1):
            try:
                options = await LogisticsService.get_by_ids(session, choice.values())
                resolved = {
                    g.store_id: _check_option(g.store_id, choice[g.store_id], options.get(choice[g.store_id]))
                    for g in groups
                }

                orders = [
                    CheckoutService._build_order(
                        group=g,
                        option=resolved[g.store_id],
                        buyer_id=actor.user_id,
                        address=address,
                        order_number=order_number_factory(),
                    )
                    for g in groups
                ]
                session.add_all(orders)
                await session.flush()
                await session.commit()
            except LogisticsOptionUnavailable:
                await session.rollback()
                raise
            except IntegrityError as e:
                await session.rollback()
                if not is_order_number_collision(e):
                    log.error("checkout integrity failure trace=%s: %s", trace.trace_id, e)
                    raise
                if attempt >= ORDER_NUMBER_MAX_RETRIES:
                    log.error("checkout failed after %d attempts trace=%s: %s", attempt, trace.trace_id, e)
                    raise PersistenceUnavailable("checkout") from e
                log.warning("checkout integrity conflict (attempt %d) trace=%s, retrying", attempt, trace.trace_id)
                continue
            except TRANSIENT_DB_ERRORS as e:
                await session.rollback()
                log.error("checkout persistence failure trace=%s: %s", trace.trace_id, e)
                raise PersistenceUnavailable("checkout") from e

            ORDERS_CREATED.inc(len(orders))
            for o in orders:
                log.info(
                    "order created no=%s store=%s buyer=%s subtotal=%s fee=%s total=%s trace=%s",
                    o.order_number,
                    o.store_id,
                    o.buyer_id,
                    o.subtotal,
                    o.logistics_fee,
                    o.total,
                    trace.trace_id,
                )
            return CheckoutResult(
                order_ids=[o.id for o in orders],
                order_numbers=[o.order_number for o in orders],
                trace_id=trace.trace_id,
            )

        raise PersistenceUnavailable("checkout")  # pragma: no cover

    @staticmethod
    def _build_order(
        *,
        group: StoreGroup,
        option: StoreLogistics,
        buyer_id: str,
        address: str,
        order_number: str,
    ) -> Order:
        order_items = [
            OrderItem(
                product_id=ql.product_id,
                quantity=ql.quantity,
                jara_quantity=ql.jara_quantity,
                unit_price=ql.unit_price,
                total_price=ql.total_price,
            )
            for ql in _quote_lines(group)
        ]
        subtotal = money(sum((it.total_price for it in order_items), Decimal("0")))
        fee = money(option.delivery_fee)
        return Order(
            order_number=order_number,
            buyer_id=buyer_id,
            store_id=group.store_id,
            subtotal=subtotal,
            logistics_fee=fee,
            total=money(subtotal + fee),
            status=OrderStatus.PENDING,
            logistics_option_id=option.id,
            delivery_address=address,
            items=order_items,
        )
