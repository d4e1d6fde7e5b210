from fastapi import APIRouter

from tourops.schemas.payments import PaymentAmountOut, PaymentAmountRequest
from tourops.services.payments import build_payment_amount

router = APIRouter(prefix="/v1/payments", tags=["payments"])


@router.post("/amount", response_model=PaymentAmountOut)
def payment_amount(payload: PaymentAmountRequest) -> PaymentAmountOut:
    return build_payment_amount(payload)
