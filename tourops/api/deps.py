from collections.abc import Callable

from fastapi import Header
from sqlalchemy.orm import Session

from tourops.core.config import get_settings
from tourops.core.errors import ApiError, AppHTTPException, SyncRequestError
from tourops.db.session import SessionLocal
from tourops.sync.sources.base import SheetSource
from tourops.sync.sources.google_sheets import GoogleSheetSource


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_api_token(authorization: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if _bearer_token(authorization) != settings.api_token:
        raise AppHTTPException(status_code=401, error=ApiError(code="unauthorized", message="Invalid bearer token"))


def require_sync_token(authorization: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if _bearer_token(authorization) != settings.api_token:
        raise SyncRequestError(401, "Invalid bearer token")


def get_sheet_source() -> SheetSource:
    settings = get_settings()
    if not settings.sheets_configured:
        raise SyncRequestError(500, "Google Sheets API is not configured")
    return GoogleSheetSource.from_settings(settings)


def get_session_factory() -> Callable[[], Session]:
    # Streamed jobs outlive the request scope, so they open their own session.
    return SessionLocal
