from pydantic import BaseModel, Field


class TravelerPricesIn(BaseModel):
    adult_price: float = Field(default=0, ge=0)
    child_price: float = Field(default=0, ge=0)
    infant_price: float = Field(default=0, ge=0)


class PricingConfigIn(BaseModel):
    adult_price: float = Field(default=0, ge=0)
    child_price: float = Field(default=0, ge=0)
    infant_price: float = Field(default=0, ge=0)
    commission_percent: float = Field(default=0, ge=0, le=100)
    markup_amount: float = 0
    markup_percent: float = Field(default=0, ge=0, le=100)
    coupon_percent: float = Field(default=0, ge=0, le=100)
    is_sale_available: bool = True
    not_included_price: float = Field(default=0, ge=0)
    choice_pricing: dict[str, TravelerPricesIn] = Field(default_factory=dict)


class PriceQuoteRequest(BaseModel):
    config: PricingConfigIn
    adults: int = Field(default=0, ge=0)
    child: int = Field(default=0, ge=0)
    infant: int = Field(default=0, ge=0)


class TravelerPricesOut(BaseModel):
    adult: float
    child: float
    infant: float


class PriceCalculationOut(BaseModel):
    base_price: TravelerPricesOut
    markup_price: TravelerPricesOut
    discount_price: TravelerPricesOut
    final_price: TravelerPricesOut
    commission: TravelerPricesOut
    net_price: TravelerPricesOut


class PriceQuoteOut(BaseModel):
    is_sale_available: bool
    calculation: PriceCalculationOut
    choices: dict[str, PriceCalculationOut] = Field(default_factory=dict)
    balance_due: float
