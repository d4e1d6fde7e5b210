from __future__ import annotations

from collections.abc import Callable, Iterator

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from tourops.api.deps import get_session_factory, get_sheet_source, require_sync_token
from tourops.core.errors import SyncRequestError, TableLockedError
from tourops.core.locks import table_locks
from tourops.db.session import get_db
from tourops.schemas.sync import (
    SheetsRequest,
    SheetsResponse,
    SuggestMappingRequest,
    SuggestMappingResponse,
    SyncHistoryOut,
    SyncStreamRequest,
    TableSchemaOut,
)
from tourops.services.sync_meta import describe_table, list_sheets, resolve_table, suggest_mapping, sync_history
from tourops.sync.events import encode_event
from tourops.sync.pipeline import SyncJob, SyncPipeline
from tourops.sync.sources.base import SheetSource

router = APIRouter(prefix="/v1/sync", tags=["sync"], dependencies=[Depends(require_sync_token)])


def _validate(payload: SyncStreamRequest) -> None:
    if not payload.spreadsheet_id:
        raise SyncRequestError(400, "spreadsheetId is required")
    if not payload.sheet_name:
        raise SyncRequestError(400, "sheetName is required")
    resolve_table(payload.target_table)
    if not payload.column_mapping:
        raise SyncRequestError(400, "columnMapping must map at least one column")


def stream_job(session_factory: Callable[[], Session], source: SheetSource, job: SyncJob, lock_token: str) -> Iterator[str]:
    db = session_factory()
    events = SyncPipeline(db, source, job).events()
    try:
        for event in events:
            yield encode_event(event)
    finally:
        # Let the pipeline record its outcome before the session goes away.
        events.close()
        db.close()
        table_locks.release(job.target_table, lock_token)


@router.post("/flexible/stream")
def flexible_stream(
    payload: SyncStreamRequest,
    source: SheetSource = Depends(get_sheet_source),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> StreamingResponse:
    _validate(payload)
    job = SyncJob(
        spreadsheet_id=payload.spreadsheet_id,
        sheet_name=payload.sheet_name,
        target_table=payload.target_table,
        column_mapping=dict(payload.column_mapping),
        enable_incremental_sync=payload.enable_incremental_sync,
        truncate_table=payload.truncate_table,
    )
    try:
        token = table_locks.acquire(job.target_table)
    except TableLockedError as exc:
        raise SyncRequestError(409, str(exc)) from exc

    # The background task covers responses whose body is never iterated.
    return StreamingResponse(
        stream_job(session_factory, source, job, token),
        media_type="application/x-ndjson",
        background=BackgroundTask(table_locks.release, job.target_table, token),
    )


@router.post("/sheets", response_model=SheetsResponse)
def sheets(payload: SheetsRequest, source: SheetSource = Depends(get_sheet_source)) -> SheetsResponse:
    return list_sheets(source, payload.spreadsheet_id)


@router.get("/schema", response_model=TableSchemaOut)
def schema(table: str = Query(default="")) -> TableSchemaOut:
    return describe_table(table)


@router.post("/suggest-mapping", response_model=SuggestMappingResponse)
def suggest(payload: SuggestMappingRequest) -> SuggestMappingResponse:
    return suggest_mapping(payload)


@router.get("/history", response_model=SyncHistoryOut)
def history(
    table: str = Query(default=""),
    spreadsheet_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> SyncHistoryOut:
    return sync_history(db, table, spreadsheet_id)
