from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tourops.db.session import get_db
from tourops.schemas.coupons import CouponValidateRequest, CouponValidateResponse
from tourops.services.coupons import validate_coupon

router = APIRouter(prefix="/v1/coupons", tags=["coupons"])


@router.post("/validate", response_model=CouponValidateResponse)
def validate(payload: CouponValidateRequest, db: Session = Depends(get_db)) -> CouponValidateResponse:
    return validate_coupon(db, payload)
