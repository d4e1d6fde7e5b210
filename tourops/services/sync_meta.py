from __future__ import annotations

from datetime import timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.core.cache import cache_client
from tourops.core.config import get_settings
from tourops.core.errors import SheetsApiError, SyncRequestError, UnknownTableError
from tourops.models import SyncRun
from tourops.schemas.sync import (
    ColumnOut,
    SheetInfoOut,
    SheetsResponse,
    SuggestMappingRequest,
    SuggestMappingResponse,
    SyncHistoryOut,
    TableSchemaOut,
)
from tourops.sync.sources.base import SheetSource, filter_sheet_names
from tourops.sync.transform import TableSpec, get_table_spec, suggest_column_mapping

SHEETS_CACHE_TTL_SECONDS = 600
SCHEMA_CACHE_TTL_SECONDS = 3600


def resolve_table(name: str) -> TableSpec:
    if not name:
        raise SyncRequestError(400, "targetTable is required")
    try:
        return get_table_spec(name)
    except UnknownTableError as exc:
        raise SyncRequestError(400, str(exc)) from exc


def list_sheets(source: SheetSource, spreadsheet_id: str) -> SheetsResponse:
    if not spreadsheet_id:
        raise SyncRequestError(400, "spreadsheetId is required")
    settings = get_settings()
    key = f"sheets:{spreadsheet_id}:v:{settings.cache_schema_version}"
    cached = cache_client.get_json(key)
    if cached.hit:
        return SheetsResponse.model_validate(cached.value)

    try:
        sheets = source.list_sheets(spreadsheet_id)
    except SheetsApiError as exc:
        raise SyncRequestError(500, f"Could not read spreadsheet: {exc}") from exc

    payload = SheetsResponse(
        spreadsheet_id=spreadsheet_id,
        sheets=[
            SheetInfoOut(name=sheet.name, row_count=sheet.row_count, column_count=sheet.column_count)
            for sheet in filter_sheet_names(sheets, settings.sheet_name_prefix)
        ],
    )
    cache_client.set_json(key, payload.model_dump(mode="json"), ttl_seconds=SHEETS_CACHE_TTL_SECONDS)
    return payload


def describe_table(name: str) -> TableSchemaOut:
    table = resolve_table(name)
    settings = get_settings()
    key = f"schema:{table.name}:v:{settings.cache_schema_version}"
    cached = cache_client.get_json(key)
    if cached.hit:
        return TableSchemaOut.model_validate(cached.value)

    payload = TableSchemaOut(
        table=table.name,
        primary_key=table.primary_key,
        columns=[
            ColumnOut(name=column.name, type=column.kind, nullable=column.nullable, primary_key=column.primary_key)
            for column in table.columns.values()
        ],
    )
    cache_client.set_json(key, payload.model_dump(mode="json"), ttl_seconds=SCHEMA_CACHE_TTL_SECONDS)
    return payload


def suggest_mapping(payload: SuggestMappingRequest) -> SuggestMappingResponse:
    table = resolve_table(payload.target_table)
    return SuggestMappingResponse(table=table.name, mapping=suggest_column_mapping(payload.sheet_columns, table))


def sync_history(db: Session, table_name: str, spreadsheet_id: str | None = None) -> SyncHistoryOut:
    table = resolve_table(table_name)
    stmt = select(SyncRun).where(SyncRun.target_table == table.name, SyncRun.status == "completed")
    if spreadsheet_id:
        stmt = stmt.where(SyncRun.spreadsheet_id == spreadsheet_id)
    last = db.execute(stmt.order_by(SyncRun.finished_at.desc()).limit(1)).scalar_one_or_none()
    if last is None:
        return SyncHistoryOut(table=table.name, spreadsheet_id=spreadsheet_id)
    finished = last.finished_at or last.started_at
    if finished.tzinfo is None:
        finished = finished.replace(tzinfo=timezone.utc)
    return SyncHistoryOut(
        table=table.name,
        spreadsheet_id=last.spreadsheet_id,
        last_sync_time=finished.astimezone(timezone.utc).isoformat(),
        last_status=last.status,
    )
