from pydantic import BaseModel, Field


class PaymentAmountRequest(BaseModel):
    amount: float = Field(ge=0)
    currency: str = "USD"


class PaymentAmountOut(BaseModel):
    amount: float
    currency: str
    minor_units: int
