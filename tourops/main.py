import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tourops.api.routes import admin, coupons, payments, pricing, reservations, sync
from tourops.core.config import get_settings
from tourops.core.errors import SyncRequestError
from tourops.db.base import Base
from tourops.db.seed import seed_channels
from tourops.db.session import engine

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    Base.metadata.create_all(bind=engine)
    with Session(engine) as db:
        seed_channels(db)


@app.exception_handler(RequestValidationError)
def request_validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"code": "validation_error", "message": "Invalid request", "details": exc.errors()})


@app.exception_handler(SyncRequestError)
def sync_request_exception_handler(request: Request, exc: SyncRequestError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Sync request %s failed: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


app.include_router(sync.router)
app.include_router(pricing.router)
app.include_router(reservations.router)
app.include_router(payments.router)
app.include_router(coupons.router)
app.include_router(admin.router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
