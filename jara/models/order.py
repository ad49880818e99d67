# jara/models/order.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jara.db.base import Base
from jara.models.enums import OrderStatus, enum_values

if TYPE_CHECKING:
    from jara.models.order_item import OrderItem
    from jara.models.store import Store


class Order(Base):
    """
    One payable order: exactly one buyer and one store.

    - total == subtotal + logistics_fee, subtotal == sum(items.total_price)
    - logistics_fee is a snapshot of the chosen option's fee at checkout;
      logistics_option_id deliberately has no FK so the option may be deleted later
    - status changes only through OrderFulfillment / PaymentService
    - never deleted; cancelled is a terminal status
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("logistics_fee >= 0", name="ck_orders_fee_nonneg"),
        Index("ix_orders_store_status", "store_id", "status"),
        Index("ix_orders_buyer_created", "buyer_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # human-readable business key, also the payment gateway tx_ref
    order_number: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)

    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="RESTRICT"),
        nullable=False,
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    logistics_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status", values_callable=enum_values),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    logistics_option_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    payment_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="OrderItem.id",
    )
    store: Mapped["Store"] = relationship("Store", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} no={self.order_number!r} store_id={self.store_id} "
            f"status={self.status} total={self.total}>"
        )
