from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jara.db.base import Base
from jara.models.enums import StoreStatus, enum_values

if TYPE_CHECKING:
    from jara.models.store_logistics import StoreLogistics


class Store(Base):
    __tablename__ = "stores"
    __table_args__ = (Index("ix_stores_owner", "owner_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # user id issued by the hosted auth provider
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    status: Mapped[StoreStatus] = mapped_column(
        SAEnum(StoreStatus, name="store_status", values_callable=enum_values),
        nullable=False,
        default=StoreStatus.ACTIVE,
    )

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

    logistics_options: Mapped[List["StoreLogistics"]] = relationship(
        "StoreLogistics",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} slug={self.slug!r} owner={self.owner_id!r} status={self.status}>"
