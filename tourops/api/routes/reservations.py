from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tourops.db.session import get_db
from tourops.schemas.reservations import ReservationTotalOut
from tourops.services.reservation_pricing import get_reservation_total

router = APIRouter(prefix="/v1/reservations", tags=["reservations"])


@router.get("/{reservation_id}/total", response_model=ReservationTotalOut)
def reservation_total(reservation_id: str, db: Session = Depends(get_db)) -> ReservationTotalOut:
    return get_reservation_total(db, reservation_id)
