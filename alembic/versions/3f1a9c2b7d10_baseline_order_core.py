"""baseline order core: stores, store_logistics, orders, order_items

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19 09:00:00

"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUS = ("pending", "paid", "processing", "shipped", "delivered", "cancelled")
LOGISTICS_TYPE = ("pickup", "delivery")
STORE_STATUS = ("pending", "active", "suspended")


def _ts(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False, unique=True),
        sa.Column("status", sa.Enum(*STORE_STATUS, name="store_status"), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_stores_owner", "stores", ["owner_id"])

    op.create_table(
        "store_logistics",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "store_id",
            sa.Integer,
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.Enum(*LOGISTICS_TYPE, name="logistics_type"), nullable=False),
        sa.Column("location_name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(128), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("delivery_timeline", sa.String(128), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        _ts("created_at"),
        sa.CheckConstraint("delivery_fee >= 0", name="ck_store_logistics_fee_nonneg"),
    )
    op.create_index("ix_store_logistics_store_active", "store_logistics", ["store_id", "is_active"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("buyer_id", sa.String(64), nullable=False),
        sa.Column(
            "store_id",
            sa.Integer,
            sa.ForeignKey("stores.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("logistics_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.Enum(*ORDER_STATUS, name="order_status"), nullable=False),
        # snapshot only, no FK: the option may be deleted later
        sa.Column("logistics_option_id", sa.Integer, nullable=True),
        sa.Column("delivery_address", sa.Text, nullable=False),
        sa.Column("payment_reference", sa.String(128), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("logistics_fee >= 0", name="ck_orders_fee_nonneg"),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_store_status", "orders", ["store_id", "status"])
    op.create_index("ix_orders_buyer_created", "orders", ["buyer_id", "created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "order_id",
            sa.Integer,
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("jara_quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
        _ts("created_at"),
        sa.CheckConstraint("quantity >= 1", name="ck_order_items_qty_pos"),
        sa.CheckConstraint("jara_quantity >= 0", name="ck_order_items_jara_nonneg"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])


def downgrade() -> None:
    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")

    op.drop_index("ix_orders_buyer_created", table_name="orders")
    op.drop_index("ix_orders_store_status", table_name="orders")
    op.drop_index("ix_orders_order_number", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_store_logistics_store_active", table_name="store_logistics")
    op.drop_table("store_logistics")

    op.drop_index("ix_stores_owner", table_name="stores")
    op.drop_table("stores")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ("order_status", "logistics_type", "store_status"):
            sa.Enum(name=enum_name).drop(bind, checkfirst=True)
