from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.core.cache import cache_client
from tourops.models import SyncRun
from tourops.schemas.admin import CacheClearRequest, CacheClearResponse, SyncRunOut

DEFAULT_CACHE_PATTERNS = ("sheets:*", "schema:*")


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def list_sync_runs(db: Session, limit: int = 50) -> list[SyncRunOut]:
    runs = db.execute(select(SyncRun).order_by(SyncRun.started_at.desc()).limit(limit)).scalars().all()
    return [
        SyncRunOut(
            id=run.id,
            spreadsheet_id=run.spreadsheet_id,
            sheet_name=run.sheet_name,
            target_table=run.target_table,
            status=run.status,
            items_total=run.items_total or 0,
            items_inserted=run.items_inserted or 0,
            items_updated=run.items_updated or 0,
            items_skipped=run.items_skipped or 0,
            items_failed=run.items_failed or 0,
            rows_deleted=run.rows_deleted or 0,
            error_summary=run.error_summary,
            started_at=_iso(run.started_at) or "",
            finished_at=_iso(run.finished_at),
        )
        for run in runs
    ]


def clear_cache(payload: CacheClearRequest) -> CacheClearResponse:
    patterns = [payload.pattern] if payload.pattern else list(DEFAULT_CACHE_PATTERNS)
    removed = sum(cache_client.delete_pattern(pattern) for pattern in patterns)
    return CacheClearResponse(status="ok", pattern=",".join(patterns), removed=removed)
