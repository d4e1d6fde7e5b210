"""Layered tour pricing.

Every traveler class runs through the same fixed pipeline:
markup (amount + percent) -> coupon discount -> final price (rounded to cents)
-> channel commission -> net price. Rounding happens only at the final-price step.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TravelerPrices:
    adult: Decimal = ZERO
    child: Decimal = ZERO
    infant: Decimal = ZERO

    @classmethod
    def of(cls, adult: Any = 0, child: Any = 0, infant: Any = 0) -> TravelerPrices:
        return cls(adult=to_decimal(adult), child=to_decimal(child), infant=to_decimal(infant))

    def map(self, fn: Callable[[Decimal], Decimal]) -> TravelerPrices:
        return TravelerPrices(adult=fn(self.adult), child=fn(self.child), infant=fn(self.infant))

    def combine(self, other: TravelerPrices, fn: Callable[[Decimal, Decimal], Decimal]) -> TravelerPrices:
        return TravelerPrices(
            adult=fn(self.adult, other.adult),
            child=fn(self.child, other.child),
            infant=fn(self.infant, other.infant),
        )

    def __add__(self, other: TravelerPrices) -> TravelerPrices:
        return self.combine(other, operator.add)

    def round2(self) -> TravelerPrices:
        return self.map(round2)

    def as_dict(self) -> dict[str, Decimal]:
        return {"adult": self.adult, "child": self.child, "infant": self.infant}


@dataclass(frozen=True)
class ChoicePricing:
    adult_price: Decimal = ZERO
    child_price: Decimal = ZERO
    infant_price: Decimal = ZERO

    @property
    def prices(self) -> TravelerPrices:
        return TravelerPrices.of(self.adult_price, self.child_price, self.infant_price)


@dataclass
class PricingConfig:
    adult_price: Decimal = ZERO
    child_price: Decimal = ZERO
    infant_price: Decimal = ZERO
    commission_percent: Decimal = ZERO
    markup_amount: Decimal = ZERO
    markup_percent: Decimal = ZERO
    coupon_percent: Decimal = ZERO
    is_sale_available: bool = True
    # Collected on site as a balance due; never part of the markup/discount/commission math.
    not_included_price: Decimal = ZERO
    choice_pricing: dict[str, ChoicePricing] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in (
            "adult_price",
            "child_price",
            "infant_price",
            "commission_percent",
            "markup_amount",
            "markup_percent",
            "coupon_percent",
            "not_included_price",
        ):
            setattr(self, name, to_decimal(getattr(self, name)))

    @property
    def base_price(self) -> TravelerPrices:
        return TravelerPrices(adult=self.adult_price, child=self.child_price, infant=self.infant_price)

    @classmethod
    def for_channel(
        cls,
        base_price: TravelerPrices,
        channel: Any | None,
        coupon_percent: Any = 0,
        not_included_price: Any = 0,
        choice_pricing: dict[str, ChoicePricing] | None = None,
    ) -> PricingConfig:
        """Build a config from a product's class prices and a channel record's commission/markup."""
        return cls(
            adult_price=base_price.adult,
            child_price=base_price.child,
            infant_price=base_price.infant,
            commission_percent=getattr(channel, "commission_percent", None),
            markup_amount=getattr(channel, "markup_amount", None),
            markup_percent=getattr(channel, "markup_percent", None),
            coupon_percent=coupon_percent,
            not_included_price=not_included_price,
            choice_pricing=dict(choice_pricing or {}),
        )


@dataclass(frozen=True)
class RealTimePriceCalculation:
    base_price: TravelerPrices
    markup_price: TravelerPrices
    discount_price: TravelerPrices
    final_price: TravelerPrices
    commission: TravelerPrices
    net_price: TravelerPrices


def calculate_price(base_price: TravelerPrices, config: PricingConfig) -> RealTimePriceCalculation:
    # Inputs are not validated; callers guarantee non-negative prices.
    markup_amount = config.markup_amount
    markup_rate = config.markup_percent / HUNDRED
    coupon_factor = 1 - config.coupon_percent / HUNDRED
    commission_rate = config.commission_percent / HUNDRED

    markup_price = base_price.map(lambda price: price + markup_amount + price * markup_rate)
    discount_price = markup_price.map(lambda price: price * coupon_factor)
    final_price = discount_price.round2()
    commission = final_price.map(lambda price: price * commission_rate)
    net_price = final_price.combine(commission, operator.sub)

    return RealTimePriceCalculation(
        base_price=base_price,
        markup_price=markup_price,
        discount_price=discount_price,
        final_price=final_price,
        commission=commission,
        net_price=net_price,
    )


def calculate_choice_price(choice_id: str, config: PricingConfig) -> RealTimePriceCalculation | None:
    """Price the product with one choice applied; ``None`` means no choice-level pricing exists."""
    choice = config.choice_pricing.get(choice_id)
    if choice is None:
        return None
    return calculate_price(config.base_price + choice.prices, config)


def calculate_choice_prices(config: PricingConfig) -> dict[str, RealTimePriceCalculation]:
    calculations: dict[str, RealTimePriceCalculation] = {}
    for choice_id in config.choice_pricing:
        calculation = calculate_choice_price(choice_id, config)
        if calculation is not None:
            calculations[choice_id] = calculation
    return calculations


def balance_due(config: PricingConfig, adults: int = 0, child: int = 0, infant: int = 0) -> Decimal:
    travelers = max(0, adults) + max(0, child) + max(0, infant)
    return round2(config.not_included_price * travelers)
