from pydantic import BaseModel, Field


class CouponValidateRequest(BaseModel):
    coupon_code: str
    total_amount: float | None = None
    product_ids: list[str] = Field(default_factory=list)


class CouponOut(BaseModel):
    id: str
    code: str
    discount_type: str | None = None
    percentage_value: float | None = None
    fixed_value: float | None = None
    description: str | None = None


class CouponValidateResponse(BaseModel):
    valid: bool
    error: str | None = None
    discount_amount: float | None = None
    final_amount: float | None = None
    coupon: CouponOut | None = None
