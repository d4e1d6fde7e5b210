from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException


@dataclass
class ApiError:
    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class AppHTTPException(HTTPException):
    def __init__(self, status_code: int, error: ApiError):
        super().__init__(status_code=status_code, detail=error.to_dict())


class SheetsApiError(RuntimeError):
    """Raised when a spreadsheet cannot be read."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownTableError(ValueError):
    def __init__(self, table: str) -> None:
        super().__init__(f"Unknown sync table: {table}")
        self.table = table


class TableLockedError(RuntimeError):
    def __init__(self, table: str) -> None:
        super().__init__(f"A sync job for table '{table}' is already running")
        self.table = table


class SyncRequestError(Exception):
    """Rendered as ``{"success": false, "message": ...}`` by the sync endpoints."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
