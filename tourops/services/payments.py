from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from tourops.core.config import get_settings
from tourops.core.errors import ApiError, AppHTTPException
from tourops.schemas.payments import PaymentAmountOut, PaymentAmountRequest
from tourops.services.pricing import to_decimal

# Minor-unit exponent per supported currency.
CURRENCY_EXPONENTS = {"USD": 2, "KRW": 0}


def to_minor_units(amount: Any, currency: str, minimum_usd: Any = "0.50") -> int:
    code = currency.upper()
    if code not in CURRENCY_EXPONENTS:
        raise ValueError(f"Unsupported currency: {currency}")

    value = to_decimal(amount)
    if value < 0:
        raise ValueError("Amount must not be negative")
    if code == "USD" and value < to_decimal(minimum_usd):
        raise ValueError(f"Amount must be at least ${to_decimal(minimum_usd):.2f} USD")

    scaled = value * (Decimal(10) ** CURRENCY_EXPONENTS[code])
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_payment_amount(payload: PaymentAmountRequest) -> PaymentAmountOut:
    settings = get_settings()
    try:
        minor_units = to_minor_units(payload.amount, payload.currency, minimum_usd=str(settings.payment_minimum_usd))
    except ValueError as exc:
        raise AppHTTPException(
            status_code=422,
            error=ApiError(code="validation_error", message=str(exc), details={"amount": payload.amount, "currency": payload.currency}),
        ) from exc
    return PaymentAmountOut(amount=payload.amount, currency=payload.currency.upper(), minor_units=minor_units)
