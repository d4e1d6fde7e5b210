from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.models import Coupon
from tourops.schemas.coupons import CouponOut, CouponValidateRequest, CouponValidateResponse
from tourops.services.pricing import HUNDRED, ZERO, round2, to_decimal


def compute_discount(coupon: Coupon, total_amount: Decimal) -> tuple[Decimal, Decimal]:
    fixed = to_decimal(coupon.fixed_value)
    percentage = to_decimal(coupon.percentage_value)

    if coupon.discount_type == "fixed" and fixed:
        discount = fixed
    elif coupon.discount_type == "percentage" and percentage:
        discount = total_amount * percentage / HUNDRED
    elif fixed and percentage:
        # Fixed amount first, percentage on what remains.
        discount = fixed + (total_amount - fixed) * percentage / HUNDRED
    elif fixed:
        discount = fixed
    elif percentage:
        discount = total_amount * percentage / HUNDRED
    else:
        discount = ZERO

    final_amount = max(ZERO, total_amount - discount)
    return round2(discount), round2(final_amount)


def _invalid(message: str) -> CouponValidateResponse:
    return CouponValidateResponse(valid=False, error=message)


def validate_coupon(db: Session, payload: CouponValidateRequest, today: date | None = None) -> CouponValidateResponse:
    code = payload.coupon_code.strip()
    if not code:
        return _invalid("Coupon code is required")
    if payload.total_amount is None or payload.total_amount <= 0:
        return _invalid("A positive total amount is required")

    active = db.execute(select(Coupon).where(Coupon.status == "active")).scalars().all()
    coupon = next((item for item in active if item.coupon_code and item.coupon_code.strip().lower() == code.lower()), None)
    if coupon is None:
        return _invalid("Invalid coupon code")

    today = today or date.today()
    if coupon.start_date and today < coupon.start_date:
        return _invalid("Coupon is not active yet")
    if coupon.end_date and today > coupon.end_date:
        return _invalid("Coupon has expired")
    if coupon.product_id and payload.product_ids and coupon.product_id not in payload.product_ids:
        return _invalid("Coupon cannot be used for these products")

    discount, final_amount = compute_discount(coupon, to_decimal(payload.total_amount))
    return CouponValidateResponse(
        valid=True,
        discount_amount=float(discount),
        final_amount=float(final_amount),
        coupon=CouponOut(
            id=coupon.id,
            code=coupon.coupon_code,
            discount_type=coupon.discount_type,
            percentage_value=float(coupon.percentage_value) if coupon.percentage_value is not None else None,
            fixed_value=float(coupon.fixed_value) if coupon.fixed_value is not None else None,
            description=coupon.description,
        ),
    )
