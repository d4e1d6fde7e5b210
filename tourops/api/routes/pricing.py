from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tourops.db.session import get_db
from tourops.schemas.pricing import PriceQuoteOut, PriceQuoteRequest
from tourops.services.quotes import quote_for_product, quote_from_request

router = APIRouter(prefix="/v1/pricing", tags=["pricing"])


@router.post("/calculate", response_model=PriceQuoteOut)
def calculate(payload: PriceQuoteRequest) -> PriceQuoteOut:
    return quote_from_request(payload)


@router.get("/products/{product_id}", response_model=PriceQuoteOut)
def product_quote(
    product_id: str,
    channel_id: str | None = Query(default=None),
    coupon_percent: float = Query(default=0, ge=0, le=100),
    db: Session = Depends(get_db),
) -> PriceQuoteOut:
    return quote_for_product(db, product_id, channel_id=channel_id, coupon_percent=coupon_percent)
