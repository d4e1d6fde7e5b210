from __future__ import annotations

import logging
import time
from urllib.parse import quote

import httpx

from tourops.core.config import Settings, get_settings
from tourops.core.errors import SheetsApiError
from tourops.sync.sources.base import (
    MAX_READ_COLUMNS,
    MIN_READ_COLUMNS,
    SheetInfo,
    SheetSource,
    column_letters,
    rows_from_values,
)

RETRYABLE_HTTP_STATUSES = {408, 425, 429, 500, 502, 503, 504}
SHEET_FIELDS = "sheets.properties(title,gridProperties(rowCount,columnCount))"

logger = logging.getLogger(__name__)


def a1_range(sheet_name: str, last_column: str) -> str:
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!A:{last_column}"


class GoogleSheetSource(SheetSource):
    """Reads spreadsheets through the Sheets v4 REST API."""

    def __init__(
        self,
        api_base: str,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout_seconds: float = 120.0,
        max_retries: int = 2,
        retry_backoff_seconds: float = 0.6,
        client: httpx.Client | None = None,
    ) -> None:
        if not (api_key or access_token):
            raise SheetsApiError("Google Sheets API credentials not configured")
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.max_retries = max(0, max_retries)
        self.retry_backoff_seconds = max(0.0, retry_backoff_seconds)
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self.client = client or httpx.Client(timeout=timeout_seconds, headers=headers)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GoogleSheetSource:
        settings = settings or get_settings()
        return cls(
            api_base=settings.google_sheets_api_base,
            api_key=settings.google_api_key,
            access_token=settings.google_access_token,
            timeout_seconds=settings.sheets_timeout_seconds,
            max_retries=settings.sheets_max_retries,
            retry_backoff_seconds=settings.sheets_retry_backoff_seconds,
        )

    def list_sheets(self, spreadsheet_id: str) -> list[SheetInfo]:
        payload = self._get_json(f"{self.api_base}/{quote(spreadsheet_id, safe='')}", {"fields": SHEET_FIELDS})
        sheets: list[SheetInfo] = []
        for sheet in payload.get("sheets", []):
            properties = sheet.get("properties", {})
            title = properties.get("title")
            if not title:
                continue
            grid = properties.get("gridProperties", {})
            sheets.append(
                SheetInfo(
                    name=str(title),
                    row_count=int(grid.get("rowCount", 0) or 0),
                    column_count=int(grid.get("columnCount", 0) or 0),
                )
            )
        return sheets

    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[dict[str, str]]:
        column_count = self._used_column_count(spreadsheet_id, sheet_name)
        target = a1_range(sheet_name, column_letters(column_count))
        url = f"{self.api_base}/{quote(spreadsheet_id, safe='')}/values/{quote(target, safe='')}"
        payload = self._get_json(url, {})
        rows = rows_from_values(payload.get("values", []))
        logger.info("Read %s rows from %s/%s (%s)", len(rows), spreadsheet_id, sheet_name, target)
        return rows

    def _used_column_count(self, spreadsheet_id: str, sheet_name: str) -> int:
        try:
            sheets = self.list_sheets(spreadsheet_id)
        except SheetsApiError as exc:
            logger.warning("Could not read grid size for %s, using %s columns: %s", sheet_name, MIN_READ_COLUMNS, exc)
            return MIN_READ_COLUMNS
        for sheet in sheets:
            if sheet.name == sheet_name:
                return max(MIN_READ_COLUMNS, min(sheet.column_count or MIN_READ_COLUMNS, MAX_READ_COLUMNS))
        return MIN_READ_COLUMNS

    def _get_json(self, url: str, params: dict[str, str]) -> dict:
        query = dict(params)
        if self.api_key:
            query["key"] = self.api_key
        response = self._request_with_retries(url, query)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SheetsApiError(f"Google Sheets returned a non-JSON response for {url}", status_code=response.status_code) from exc
        if not isinstance(payload, dict):
            raise SheetsApiError(f"Unexpected Google Sheets response for {url}", status_code=response.status_code)
        return payload

    def _request_with_retries(self, url: str, params: dict[str, str]) -> httpx.Response:
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                response = self.client.get(url, params=params)
                if response.status_code in RETRYABLE_HTTP_STATUSES:
                    raise httpx.HTTPStatusError(
                        f"Retryable status {response.status_code} for {url}",
                        request=response.request,
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
                if status is not None and status not in RETRYABLE_HTTP_STATUSES:
                    raise SheetsApiError(self._describe_status(status), status_code=status) from exc

                if attempt >= attempts - 1:
                    raise SheetsApiError(f"Google Sheets request failed after {attempts} attempts: {exc}", status_code=status) from exc

                backoff = self.retry_backoff_seconds * (2**attempt)
                if backoff > 0:
                    time.sleep(backoff)
                logger.debug("Retrying %s after error (%s), attempt %s/%s", url, exc, attempt + 1, attempts)
        raise RuntimeError(f"Unreachable retry state for {url}")

    @staticmethod
    def _describe_status(status: int) -> str:
        if status == 403:
            return "Permission denied: share the spreadsheet with the service account and enable the Sheets API"
        if status == 404:
            return "Spreadsheet or sheet not found: check the spreadsheet id and sheet name"
        if status == 400:
            return "Google Sheets rejected the request (check the sheet name)"
        return f"Google Sheets API error: HTTP {status}"
