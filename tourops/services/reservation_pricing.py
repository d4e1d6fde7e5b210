from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.core.config import Settings, get_settings
from tourops.core.errors import ApiError, AppHTTPException
from tourops.models import Product, ProductOptionChoice, Reservation
from tourops.schemas.reservations import ReservationTotalOut
from tourops.services.pricing import ZERO, TravelerPrices, round2, to_decimal

TRAVELER_CLASSES = ("adult", "child", "infant")


@dataclass(frozen=True)
class ReservationPriceBreakdown:
    base_price: TravelerPrices
    choice_adjustments: TravelerPrices
    manual_overrides: TravelerPrices
    unit_price: TravelerPrices
    total: Decimal


def traveler_base_prices(product: Product, child_ratio: Any, infant_ratio: Any) -> TravelerPrices:
    base = to_decimal(product.base_price)
    child = product.child_price if product.child_price is not None else base * to_decimal(child_ratio)
    infant = product.infant_price if product.infant_price is not None else base * to_decimal(infant_ratio)
    return TravelerPrices.of(base, child, infant)


def selected_choice_ids(selected_options: Mapping[str, Any] | None) -> list[str]:
    choice_ids: list[str] = []
    for value in (selected_options or {}).values():
        if isinstance(value, (list, tuple)):
            choice_ids.extend(str(item) for item in value)
    return choice_ids


def _choice_adjustments(choice_ids: Iterable[str], choices: Mapping[str, ProductOptionChoice]) -> TravelerPrices:
    total = TravelerPrices()
    for choice_id in choice_ids:
        choice = choices.get(choice_id)
        if choice is None:
            continue
        # A null adjustment contributes nothing.
        total = total + TravelerPrices.of(
            choice.adult_price_adjustment,
            choice.child_price_adjustment,
            choice.infant_price_adjustment,
        )
    return total


def _manual_overrides(selected_option_prices: Mapping[str, Any] | None) -> TravelerPrices:
    sums = {traveler_class: ZERO for traveler_class in TRAVELER_CLASSES}
    for key, value in (selected_option_prices or {}).items():
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            continue
        traveler_class = str(key).rsplit("_", 1)[-1]
        if traveler_class in sums:
            sums[traveler_class] += to_decimal(value)
    return TravelerPrices(**sums)


def calculate_total_price(
    reservation: Reservation,
    product: Product | None,
    choices: Mapping[str, ProductOptionChoice],
    child_ratio: Any = "0.7",
    infant_ratio: Any = "0.3",
    stack_manual_overrides: bool = True,
) -> ReservationPriceBreakdown:
    """Total = adults*adult + child*child + infant*infant.

    Each class price is the product base plus every selected choice adjustment plus,
    when ``stack_manual_overrides`` is on, the manual per-class amounts keyed
    ``{optionId}_{choiceId}_{class}``. Manual amounts are added on top of the choice
    adjustments; they never replace them.
    """
    if product is None or not product.base_price:
        empty = TravelerPrices()
        return ReservationPriceBreakdown(empty, empty, empty, empty, ZERO)

    base = traveler_base_prices(product, child_ratio, infant_ratio)
    adjustments = _choice_adjustments(selected_choice_ids(reservation.selected_options), choices)
    overrides = _manual_overrides(reservation.selected_option_prices) if stack_manual_overrides else TravelerPrices()
    unit_price = base + adjustments + overrides

    total = (
        unit_price.adult * (reservation.adults or 0)
        + unit_price.child * (reservation.child or 0)
        + unit_price.infant * (reservation.infant or 0)
    )
    return ReservationPriceBreakdown(
        base_price=base,
        choice_adjustments=adjustments,
        manual_overrides=overrides,
        unit_price=unit_price,
        total=round2(total),
    )


def get_reservation_total(db: Session, reservation_id: str, settings: Settings | None = None) -> ReservationTotalOut:
    settings = settings or get_settings()
    reservation = db.get(Reservation, reservation_id)
    if not reservation:
        raise AppHTTPException(
            status_code=404,
            error=ApiError(code="not_found", message="Reservation not found", details={"reservation_id": reservation_id}),
        )

    product = db.get(Product, reservation.product_id) if reservation.product_id else None
    choice_ids = selected_choice_ids(reservation.selected_options)
    choices: dict[str, ProductOptionChoice] = {}
    if choice_ids:
        rows = db.execute(select(ProductOptionChoice).where(ProductOptionChoice.id.in_(choice_ids))).scalars().all()
        choices = {row.id: row for row in rows}

    breakdown = calculate_total_price(
        reservation,
        product,
        choices,
        child_ratio=str(settings.child_price_ratio),
        infant_ratio=str(settings.infant_price_ratio),
        stack_manual_overrides=settings.stack_manual_overrides,
    )
    return ReservationTotalOut(
        reservation_id=reservation.id,
        product_id=reservation.product_id,
        adults=reservation.adults or 0,
        child=reservation.child or 0,
        infant=reservation.infant or 0,
        base_price={key: float(value) for key, value in breakdown.base_price.as_dict().items()},
        choice_adjustments={key: float(value) for key, value in breakdown.choice_adjustments.as_dict().items()},
        manual_overrides={key: float(value) for key, value in breakdown.manual_overrides.as_dict().items()},
        unit_price={key: float(value) for key, value in breakdown.unit_price.as_dict().items()},
        total=float(breakdown.total),
        manual_overrides_stacked=settings.stack_manual_overrides,
    )
