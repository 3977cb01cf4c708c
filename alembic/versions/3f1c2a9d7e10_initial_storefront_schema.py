"""initial storefront schema

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 10:12:41.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "user_profile",
        sa.Column("uid", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("photo_url", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_profile_email", "user_profile", ["email"])

    op.create_table(
        "unit",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("sinhala_title", sa.String(), nullable=False, server_default=""),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("price_sinhala_note", sa.Float(), nullable=True),
        sa.Column("price_sinhala_assignment", sa.Float(), nullable=True),
        sa.Column("price_english_note", sa.Float(), nullable=True),
        sa.Column("price_english_assignment", sa.Float(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_unit_code", "unit", ["code"])
    op.create_index("ix_unit_category", "unit", ["category"])

    op.create_table(
        "order",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_code", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("user_display_name", sa.String(), nullable=False, server_default=""),
        sa.Column("user_email", sa.String(), nullable=False, server_default=""),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("source", sa.String(), nullable=False, server_default="checkout"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        # completed_at is present exactly when the order is completed
        sa.CheckConstraint(
            "(status = 'completed') = (completed_at IS NOT NULL)",
            name="ck_order_completed_at_matches_status",
        ),
    )
    op.create_index("ix_order_order_code", "order", ["order_code"])
    op.create_index("ix_order_user_id", "order", ["user_id"])
    op.create_index("ix_order_status", "order", ["status"])

    op.create_table(
        "order_item",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("unit_code", sa.String(), nullable=False),
        sa.Column("item_name", sa.String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("item_type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("sinhala_title", sa.String(), nullable=False, server_default=""),
        sa.Column("user_file_key", sa.String(), nullable=True),
        sa.Column("downloaded", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_order_item_order_id", "order_item", ["order_id"])
    op.create_index("ix_order_item_unit_id", "order_item", ["unit_id"])

    op.create_table(
        "manual_order_key",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("order_code", sa.String(), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("redeemed_by", sa.String(), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(), nullable=True),
        sa.Column("order_id", sa.String(), nullable=True),
    )
    op.create_index("ix_manual_order_key_key", "manual_order_key", ["key"], unique=True)
    op.create_index("ix_manual_order_key_redeemed_by", "manual_order_key", ["redeemed_by"])

    counters = op.create_table(
        "order_counter",
        sa.Column("name", sa.String(), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="1000"),
    )
    # seed rows so FOR UPDATE always has something to lock
    op.bulk_insert(counters, [
        {"name": "order", "value": 1000},
        {"name": "manual", "value": 1000},
    ])

    op.create_table(
        "order_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
    )

    # indexes for fast timeline queries
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_event_type", "order_event", ["event_type"])


def downgrade():
    op.drop_index("ix_order_event_event_type", table_name="order_event")
    op.drop_index("ix_order_event_order_id", table_name="order_event")
    op.drop_table("order_event")
    op.drop_table("order_counter")
    op.drop_index("ix_manual_order_key_redeemed_by", table_name="manual_order_key")
    op.drop_index("ix_manual_order_key_key", table_name="manual_order_key")
    op.drop_table("manual_order_key")
    op.drop_index("ix_order_item_unit_id", table_name="order_item")
    op.drop_index("ix_order_item_order_id", table_name="order_item")
    op.drop_table("order_item")
    op.drop_index("ix_order_status", table_name="order")
    op.drop_index("ix_order_user_id", table_name="order")
    op.drop_index("ix_order_order_code", table_name="order")
    op.drop_table("order")
    op.drop_index("ix_unit_category", table_name="unit")
    op.drop_index("ix_unit_code", table_name="unit")
    op.drop_table("unit")
    op.drop_index("ix_user_profile_email", table_name="user_profile")
    op.drop_table("user_profile")
