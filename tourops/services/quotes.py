from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.core.config import get_settings
from tourops.core.errors import ApiError, AppHTTPException
from tourops.models import Channel, Product, ProductOptionChoice
from tourops.schemas.pricing import PriceCalculationOut, PriceQuoteOut, PriceQuoteRequest, TravelerPricesOut
from tourops.services.pricing import (
    ChoicePricing,
    PricingConfig,
    RealTimePriceCalculation,
    TravelerPrices,
    balance_due,
    calculate_choice_prices,
    calculate_price,
)
from tourops.services.reservation_pricing import traveler_base_prices


def _prices_out(prices: TravelerPrices) -> TravelerPricesOut:
    return TravelerPricesOut(adult=float(prices.adult), child=float(prices.child), infant=float(prices.infant))


def calculation_out(calculation: RealTimePriceCalculation) -> PriceCalculationOut:
    return PriceCalculationOut(
        base_price=_prices_out(calculation.base_price),
        markup_price=_prices_out(calculation.markup_price),
        discount_price=_prices_out(calculation.discount_price),
        final_price=_prices_out(calculation.final_price),
        commission=_prices_out(calculation.commission),
        net_price=_prices_out(calculation.net_price),
    )


def quote(config: PricingConfig, adults: int = 0, child: int = 0, infant: int = 0) -> PriceQuoteOut:
    calculation = calculate_price(config.base_price, config)
    choices = calculate_choice_prices(config)
    return PriceQuoteOut(
        is_sale_available=config.is_sale_available,
        calculation=calculation_out(calculation),
        choices={choice_id: calculation_out(item) for choice_id, item in choices.items()},
        balance_due=float(balance_due(config, adults, child, infant)),
    )


def quote_from_request(payload: PriceQuoteRequest) -> PriceQuoteOut:
    data = payload.config
    config = PricingConfig(
        adult_price=data.adult_price,
        child_price=data.child_price,
        infant_price=data.infant_price,
        commission_percent=data.commission_percent,
        markup_amount=data.markup_amount,
        markup_percent=data.markup_percent,
        coupon_percent=data.coupon_percent,
        is_sale_available=data.is_sale_available,
        not_included_price=data.not_included_price,
        choice_pricing={
            choice_id: ChoicePricing(
                adult_price=item.adult_price,
                child_price=item.child_price,
                infant_price=item.infant_price,
            )
            for choice_id, item in data.choice_pricing.items()
        },
    )
    return quote(config, payload.adults, payload.child, payload.infant)


def quote_for_product(
    db: Session,
    product_id: str,
    channel_id: str | None = None,
    coupon_percent: float = 0,
) -> PriceQuoteOut:
    settings = get_settings()
    product = db.get(Product, product_id)
    if not product:
        raise AppHTTPException(
            status_code=404,
            error=ApiError(code="not_found", message="Product not found", details={"product_id": product_id}),
        )

    channel = None
    if channel_id:
        channel = db.get(Channel, channel_id)
        if not channel:
            raise AppHTTPException(
                status_code=404,
                error=ApiError(code="not_found", message="Channel not found", details={"channel_id": channel_id}),
            )

    choices = db.execute(select(ProductOptionChoice).where(ProductOptionChoice.product_id == product_id)).scalars().all()
    config = PricingConfig.for_channel(
        traveler_base_prices(product, str(settings.child_price_ratio), str(settings.infant_price_ratio)),
        channel,
        coupon_percent=coupon_percent,
        not_included_price=product.not_included_price,
        choice_pricing={
            choice.id: ChoicePricing(
                adult_price=choice.adult_price_adjustment,
                child_price=choice.child_price_adjustment,
                infant_price=choice.infant_price_adjustment,
            )
            for choice in choices
        },
    )
    config.is_sale_available = product.status == "active"
    return quote(config)
