from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from tourops.db.base import Base


JsonDict = dict[str, object]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(256), index=True)
    name_en: Mapped[str | None] = mapped_column(String(256))
    category: Mapped[str | None] = mapped_column(String(128), index=True)
    base_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    # Explicit traveler-class prices; when unset the configured ratios of base_price apply.
    child_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    infant_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    not_included_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(32), default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    choices: Mapped[list[ProductOptionChoice]] = relationship(back_populates="product")


class Channel(Base):
    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128))
    type: Mapped[str | None] = mapped_column(String(32))
    commission_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    markup_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    markup_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(32), default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class ProductOptionChoice(Base):
    __tablename__ = "product_option_choices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    product_id: Mapped[str | None] = mapped_column(ForeignKey("products.id"), index=True)
    option_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(256))
    adult_price_adjustment: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    child_price_adjustment: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    infant_price_adjustment: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    product: Mapped[Product | None] = relationship(back_populates="choices")


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(256), default="Unknown")
    email: Mapped[str | None] = mapped_column(String(256), index=True)
    phone: Mapped[str | None] = mapped_column(String(64))
    language: Mapped[str] = mapped_column(String(16), default="ko")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Reservation(Base):
    __tablename__ = "reservations"

    # Reference columns are plain strings: spreadsheet imports may arrive before their targets.
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    customer_id: Mapped[str | None] = mapped_column(String(64), index=True)
    product_id: Mapped[str | None] = mapped_column(String(64), index=True)
    channel_id: Mapped[str] = mapped_column(String(64), default="default", index=True)
    channel_rn: Mapped[str | None] = mapped_column(String(128))
    tour_id: Mapped[str | None] = mapped_column(String(64), index=True)
    tour_date: Mapped[date | None] = mapped_column(Date, index=True)
    tour_time: Mapped[str | None] = mapped_column(String(32))
    adults: Mapped[int] = mapped_column(Integer, default=0)
    child: Mapped[int] = mapped_column(Integer, default=0)
    infant: Mapped[int] = mapped_column(Integer, default=0)
    total_people: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(32), default="pending", index=True)
    pickup_hotel: Mapped[str | None] = mapped_column(String(128))
    pickup_time: Mapped[str | None] = mapped_column(String(32))
    event_note: Mapped[str | None] = mapped_column(Text)
    added_by: Mapped[str | None] = mapped_column(String(256))
    is_private_tour: Mapped[bool] = mapped_column(Boolean, default=False)
    selected_options: Mapped[JsonDict] = mapped_column(JSON, default=dict)
    selected_option_prices: Mapped[JsonDict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    product_id: Mapped[str | None] = mapped_column(String(64), index=True)
    tour_date: Mapped[date | None] = mapped_column(Date, index=True)
    tour_status: Mapped[str] = mapped_column(String(32), default="Recruiting")
    tour_guide_id: Mapped[str | None] = mapped_column(String(256))
    assistant_id: Mapped[str | None] = mapped_column(String(256))
    tour_car_id: Mapped[str | None] = mapped_column(String(64))
    is_private_tour: Mapped[bool] = mapped_column(Boolean, default=False)
    reservation_ids: Mapped[list[str]] = mapped_column(JSON, default=list, info={"json_shape": "list"})
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class TeamMember(Base):
    __tablename__ = "team"

    email: Mapped[str] = mapped_column(String(256), primary_key=True)
    name_ko: Mapped[str | None] = mapped_column(String(128))
    name_en: Mapped[str | None] = mapped_column(String(128))
    phone: Mapped[str | None] = mapped_column(String(64))
    position: Mapped[str | None] = mapped_column(String(64))
    languages: Mapped[list[str]] = mapped_column(JSON, default=list, info={"json_shape": "list"})
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class TourExpense(Base):
    __tablename__ = "tour_expenses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    tour_id: Mapped[str | None] = mapped_column(String(64), index=True)
    product_id: Mapped[str | None] = mapped_column(String(64), index=True)
    tour_date: Mapped[date | None] = mapped_column(Date)
    paid_to: Mapped[str | None] = mapped_column(String(256))
    paid_for: Mapped[str | None] = mapped_column(String(256))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(64))
    submitted_by: Mapped[str | None] = mapped_column(String(256))
    note: Mapped[str | None] = mapped_column(Text)
    submit_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class ReservationExpense(Base):
    __tablename__ = "reservation_expenses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    reservation_id: Mapped[str | None] = mapped_column(String(64), index=True)
    paid_to: Mapped[str | None] = mapped_column(String(256))
    paid_for: Mapped[str | None] = mapped_column(String(256))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(64))
    submitted_by: Mapped[str | None] = mapped_column(String(256))
    note: Mapped[str | None] = mapped_column(Text)
    submit_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class PaymentRecord(Base):
    __tablename__ = "payment_records"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    reservation_id: Mapped[str | None] = mapped_column(String(64), index=True)
    payment_status: Mapped[str | None] = mapped_column(String(32))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    amount_krw: Mapped[Decimal | None] = mapped_column(Numeric(14, 0), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(64))
    note: Mapped[str | None] = mapped_column(Text)
    submit_by: Mapped[str | None] = mapped_column(String(256))
    submit_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Coupon(Base):
    __tablename__ = "coupons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    coupon_code: Mapped[str] = mapped_column(String(64), index=True)
    discount_type: Mapped[str | None] = mapped_column(String(32))
    percentage_value: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    fixed_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="active", index=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    product_id: Mapped[str | None] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)


class SyncRun(Base):
    __tablename__ = "sync_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    spreadsheet_id: Mapped[str] = mapped_column(String(128), index=True)
    sheet_name: Mapped[str] = mapped_column(String(128))
    target_table: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(32), index=True)
    items_total: Mapped[int] = mapped_column(Integer, default=0)
    items_inserted: Mapped[int] = mapped_column(Integer, default=0)
    items_updated: Mapped[int] = mapped_column(Integer, default=0)
    items_skipped: Mapped[int] = mapped_column(Integer, default=0)
    items_failed: Mapped[int] = mapped_column(Integer, default=0)
    rows_deleted: Mapped[int] = mapped_column(Integer, default=0)
    error_summary: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SyncCheckpoint(Base):
    __tablename__ = "sync_checkpoints"
    __table_args__ = (
        UniqueConstraint("spreadsheet_id", "sheet_name", "target_table", name="uq_sync_checkpoint_source_target"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    spreadsheet_id: Mapped[str] = mapped_column(String(128))
    sheet_name: Mapped[str] = mapped_column(String(128))
    target_table: Mapped[str] = mapped_column(String(64))
    # Index of the last source row written without a gap; -1 means nothing applied yet.
    last_row_index: Mapped[int] = mapped_column(Integer, default=-1)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
