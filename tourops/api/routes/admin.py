from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tourops.api.deps import require_api_token
from tourops.db.session import get_db
from tourops.schemas.admin import CacheClearRequest, CacheClearResponse, SyncRunOut
from tourops.services.admin import clear_cache, list_sync_runs

router = APIRouter(prefix="/v1/admin", tags=["admin"], dependencies=[Depends(require_api_token)])


@router.get("/sync-runs", response_model=list[SyncRunOut])
def sync_runs(limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)) -> list[SyncRunOut]:
    return list_sync_runs(db, limit=limit)


@router.post("/cache/clear", response_model=CacheClearResponse)
def cache_clear(payload: CacheClearRequest | None = None) -> CacheClearResponse:
    return clear_cache(payload or CacheClearRequest())
