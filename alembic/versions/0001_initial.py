"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _expense_columns() -> list[sa.Column]:
    return [
        sa.Column("paid_to", sa.String(length=256), nullable=True),
        sa.Column("paid_for", sa.String(length=256), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_method", sa.String(length=64), nullable=True),
        sa.Column("submitted_by", sa.String(length=256), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("submit_on", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    json_type = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
    money = sa.Numeric(10, 2)

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("name_en", sa.String(length=256), nullable=True),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("base_price", money, nullable=True),
        sa.Column("child_price", money, nullable=True),
        sa.Column("infant_price", money, nullable=True),
        sa.Column("not_included_price", money, nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "channels",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=True),
        sa.Column("commission_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("markup_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("markup_amount", money, nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "product_option_choices",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("product_id", sa.String(length=64), sa.ForeignKey("products.id"), nullable=True),
        sa.Column("option_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("adult_price_adjustment", money, nullable=True),
        sa.Column("child_price_adjustment", money, nullable=True),
        sa.Column("infant_price_adjustment", money, nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_product_option_choices_product_id", "product_option_choices", ["product_id"])
    op.create_index("ix_product_option_choices_option_id", "product_option_choices", ["option_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=256), nullable=False, server_default="Unknown"),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("language", sa.String(length=16), nullable=False, server_default="ko"),
        *_timestamps(),
    )
    op.create_index("ix_customers_email", "customers", ["email"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("customer_id", sa.String(length=64), nullable=True),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("channel_id", sa.String(length=64), nullable=False, server_default="default"),
        sa.Column("channel_rn", sa.String(length=128), nullable=True),
        sa.Column("tour_id", sa.String(length=64), nullable=True),
        sa.Column("tour_date", sa.Date(), nullable=True),
        sa.Column("tour_time", sa.String(length=32), nullable=True),
        sa.Column("adults", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("child", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("infant", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_people", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("pickup_hotel", sa.String(length=128), nullable=True),
        sa.Column("pickup_time", sa.String(length=32), nullable=True),
        sa.Column("event_note", sa.Text(), nullable=True),
        sa.Column("added_by", sa.String(length=256), nullable=True),
        sa.Column("is_private_tour", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("selected_options", json_type, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("selected_option_prices", json_type, nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
    )
    for column in ("customer_id", "product_id", "channel_id", "tour_id", "tour_date", "status"):
        op.create_index(f"ix_reservations_{column}", "reservations", [column])

    op.create_table(
        "tours",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("tour_date", sa.Date(), nullable=True),
        sa.Column("tour_status", sa.String(length=32), nullable=False, server_default="Recruiting"),
        sa.Column("tour_guide_id", sa.String(length=256), nullable=True),
        sa.Column("assistant_id", sa.String(length=256), nullable=True),
        sa.Column("tour_car_id", sa.String(length=64), nullable=True),
        sa.Column("is_private_tour", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reservation_ids", json_type, nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
    )
    op.create_index("ix_tours_product_id", "tours", ["product_id"])
    op.create_index("ix_tours_tour_date", "tours", ["tour_date"])

    op.create_table(
        "team",
        sa.Column("email", sa.String(length=256), primary_key=True),
        sa.Column("name_ko", sa.String(length=128), nullable=True),
        sa.Column("name_en", sa.String(length=128), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("position", sa.String(length=64), nullable=True),
        sa.Column("languages", json_type, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "tour_expenses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("tour_id", sa.String(length=64), nullable=True),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("tour_date", sa.Date(), nullable=True),
        *_expense_columns(),
        *_timestamps(),
    )
    op.create_index("ix_tour_expenses_tour_id", "tour_expenses", ["tour_id"])
    op.create_index("ix_tour_expenses_product_id", "tour_expenses", ["product_id"])

    op.create_table(
        "reservation_expenses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("reservation_id", sa.String(length=64), nullable=True),
        *_expense_columns(),
        *_timestamps(),
    )
    op.create_index("ix_reservation_expenses_reservation_id", "reservation_expenses", ["reservation_id"])

    op.create_table(
        "payment_records",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("reservation_id", sa.String(length=64), nullable=True),
        sa.Column("payment_status", sa.String(length=32), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("amount_krw", sa.Numeric(14, 0), nullable=True),
        sa.Column("payment_method", sa.String(length=64), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("submit_by", sa.String(length=256), nullable=True),
        sa.Column("submit_on", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payment_records_reservation_id", "payment_records", ["reservation_id"])

    op.create_table(
        "coupons",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("coupon_code", sa.String(length=64), nullable=False),
        sa.Column("discount_type", sa.String(length=32), nullable=True),
        sa.Column("percentage_value", sa.Numeric(5, 2), nullable=True),
        sa.Column("fixed_value", money, nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_coupons_coupon_code", "coupons", ["coupon_code"])
    op.create_index("ix_coupons_status", "coupons", ["status"])

    op.create_table(
        "sync_runs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("spreadsheet_id", sa.String(length=128), nullable=False),
        sa.Column("sheet_name", sa.String(length=128), nullable=False),
        sa.Column("target_table", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("items_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_inserted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_updated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_skipped", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_failed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rows_deleted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_summary", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sync_runs_spreadsheet_id", "sync_runs", ["spreadsheet_id"])
    op.create_index("ix_sync_runs_target_table", "sync_runs", ["target_table"])
    op.create_index("ix_sync_runs_status", "sync_runs", ["status"])
    op.create_index("ix_sync_runs_started_at", "sync_runs", ["started_at"])

    op.create_table(
        "sync_checkpoints",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("spreadsheet_id", sa.String(length=128), nullable=False),
        sa.Column("sheet_name", sa.String(length=128), nullable=False),
        sa.Column("target_table", sa.String(length=64), nullable=False),
        sa.Column("last_row_index", sa.Integer(), nullable=False, server_default="-1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("spreadsheet_id", "sheet_name", "target_table", name="uq_sync_checkpoint_source_target"),
    )


def downgrade() -> None:
    for table in (
        "sync_checkpoints",
        "sync_runs",
        "coupons",
        "payment_records",
        "reservation_expenses",
        "tour_expenses",
        "team",
        "tours",
        "reservations",
        "customers",
        "product_option_choices",
        "channels",
        "products",
    ):
        op.drop_table(table)
