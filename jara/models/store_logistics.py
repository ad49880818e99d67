from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jara.db.base import Base
from jara.models.enums import LogisticsType, enum_values

if TYPE_CHECKING:
    from jara.models.store import Store


class StoreLogistics(Base):
    """
    A pickup point or delivery option offered by one store.
    Orders copy delivery_fee at checkout; later edits or deletion never reach them.
    """

    __tablename__ = "store_logistics"
    __table_args__ = (
        CheckConstraint("delivery_fee >= 0", name="ck_store_logistics_fee_nonneg"),
        Index("ix_store_logistics_store_active", "store_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )

    type: Mapped[LogisticsType] = mapped_column(
        SAEnum(LogisticsType, name="logistics_type", values_callable=enum_values),
        nullable=False,
    )
    location_name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    delivery_timeline: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    store: Mapped["Store"] = relationship("Store", back_populates="logistics_options")

    def __repr__(self) -> str:
        return (
            f"<StoreLogistics id={self.id} store_id={self.store_id} type={self.type} "
            f"fee={self.delivery_fee} active={self.is_active}>"
        )
