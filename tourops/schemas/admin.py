from pydantic import BaseModel


class SyncRunOut(BaseModel):
    id: str
    spreadsheet_id: str
    sheet_name: str
    target_table: str
    status: str
    items_total: int
    items_inserted: int
    items_updated: int
    items_skipped: int
    items_failed: int
    rows_deleted: int
    error_summary: str | None
    started_at: str
    finished_at: str | None


class CacheClearRequest(BaseModel):
    pattern: str | None = None


class CacheClearResponse(BaseModel):
    status: str
    pattern: str
    removed: int
