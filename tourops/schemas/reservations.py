from pydantic import BaseModel


class ReservationTotalOut(BaseModel):
    reservation_id: str
    product_id: str | None
    adults: int
    child: int
    infant: int
    base_price: dict[str, float]
    choice_adjustments: dict[str, float]
    manual_overrides: dict[str, float]
    unit_price: dict[str, float]
    total: float
    manual_overrides_stacked: bool
