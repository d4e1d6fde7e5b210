from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourops.core.config import Settings, get_settings
from tourops.core.errors import SheetsApiError
from tourops.models import SyncCheckpoint, SyncRun
from tourops.models.entities import utc_now
from tourops.sync.eraser import ChunkedTableEraser
from tourops.sync.events import (
    ErrorEvent,
    InfoEvent,
    ProgressEvent,
    ResultEvent,
    StartEvent,
    SyncEvent,
    WarnEvent,
)
from tourops.sync.sources.base import SheetSource
from tourops.sync.transform import TableSpec, TransformedRow, get_table_spec, transform_rows, unknown_mapping_targets

logger = logging.getLogger(__name__)

MAX_ERROR_DETAILS = 100


@dataclass
class SyncJob:
    spreadsheet_id: str
    sheet_name: str
    target_table: str
    column_mapping: dict[str, str]
    enable_incremental_sync: bool = False
    truncate_table: bool = False


@dataclass
class SyncCounters:
    total: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    deleted: int = 0
    error_details: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.inserted + self.updated

    def progress(self) -> ProgressEvent:
        return ProgressEvent(
            processed=self.processed,
            total=self.total,
            inserted=self.inserted,
            updated=self.updated,
            skipped=self.skipped,
            errors=self.errors,
        )


class SyncPipeline:
    def __init__(self, db: Session, source: SheetSource, job: SyncJob, settings: Settings | None = None) -> None:
        self.db = db
        self.source = source
        self.job = job
        self.settings = settings or get_settings()
        self.table: TableSpec = get_table_spec(job.target_table)
        self.counters = SyncCounters()
        self.run: SyncRun | None = None

    def events(self) -> Iterator[SyncEvent]:
        job = self.job
        try:
            self.run = self._start_run()
        except SQLAlchemyError as exc:
            logger.exception("Could not record sync run for %s", job.target_table)
            yield ErrorEvent(message=f"Database unavailable: {exc}")
            return

        finished = False
        try:
            yield InfoEvent(message=f"Syncing sheet '{job.sheet_name}' into '{self.table.name}'")
            for target in unknown_mapping_targets(job.column_mapping, self.table):
                yield WarnEvent(message=f"Column '{target}' does not exist in {self.table.name} and will be ignored")

            checkpoint = self._load_checkpoint()

            if job.truncate_table:
                eraser = ChunkedTableEraser(self.db, self.table)
                yield InfoEvent(message=f"Deleting existing rows from {self.table.name}")
                for notice in eraser.iter_delete(self.settings.sync_delete_chunk_size):
                    if notice.backoff:
                        yield WarnEvent(message=notice.message)
                    else:
                        yield InfoEvent(message=notice.message)
                result = eraser.result
                self.counters.deleted = result.deleted_count
                if not result.success:
                    self._finish("failed", f"Truncate failed: {result.error}")
                    finished = True
                    yield ErrorEvent(message=f"Failed to clear {self.table.name} after {result.deleted_count} rows: {result.error}")
                    return
                checkpoint.last_row_index = -1
                self.db.commit()
                yield InfoEvent(message=f"Deleted {result.deleted_count} rows from {self.table.name}")

            try:
                rows = self.source.read_rows(job.spreadsheet_id, job.sheet_name)
            except SheetsApiError as exc:
                logger.exception("Reading sheet %s failed", job.sheet_name)
                self._finish("failed", str(exc))
                finished = True
                yield ErrorEvent(message=f"Could not read spreadsheet: {exc}")
                return

            self.counters.total = len(rows)
            yield StartEvent(total=len(rows))

            resume_after = checkpoint.last_row_index if job.enable_incremental_sync else -1
            if resume_after >= 0:
                yield InfoEvent(message=f"Incremental sync: skipping {min(resume_after + 1, len(rows))} rows already applied")

            cursor = resume_after
            contiguous = True
            progress_every = max(self.settings.sync_progress_every, 1)
            for position, row in enumerate(transform_rows(rows, job.column_mapping, self.table), start=1):
                for warning in row.warnings:
                    yield WarnEvent(message=warning, row=row.sheet_row)

                if row.index <= resume_after:
                    self.counters.skipped += 1
                elif self._apply(row):
                    if contiguous:
                        cursor = row.index
                else:
                    contiguous = False

                if position % progress_every == 0:
                    self._save_cursor(checkpoint, cursor)
                    yield self.counters.progress()

            self._save_cursor(checkpoint, cursor)
            if self.counters.total % progress_every != 0 or self.counters.total == 0:
                yield self.counters.progress()

            self._finish("completed")
            finished = True
            yield self._result()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Sync of %s aborted", self.table.name)
            self._finish("failed", str(exc))
            finished = True
            yield ErrorEvent(message=f"Database error: {exc}")
        except Exception as exc:
            self.db.rollback()
            logger.exception("Sync of %s failed", self.table.name)
            self._finish("failed", str(exc))
            finished = True
            yield ErrorEvent(message=f"Sync failed: {exc}")
        finally:
            if not finished:
                # Consumer stopped reading before the job ended.
                self._finish("cancelled", "Stream closed before completion")

    def _apply(self, row: TransformedRow) -> bool:
        counters = self.counters
        key = row.values.get(self.table.primary_key)
        if key is None or key == "":
            counters.skipped += 1
            return True

        values = self._writable_values(row.values)
        try:
            with self.db.begin_nested():
                existing = self.db.get(self.table.model, key)
                if existing is None:
                    self.db.add(self.table.model(**values))
                    inserted = True
                else:
                    for column, value in values.items():
                        if column != self.table.primary_key:
                            setattr(existing, column, value)
                    inserted = False
                self.db.flush()
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            counters.errors += 1
            detail = f"Row {row.sheet_row}: {exc.__class__.__name__}: {str(exc).splitlines()[0] if str(exc) else ''}"
            logger.warning("Sync write failed for %s %s: %s", self.table.name, detail, exc)
            if len(counters.error_details) < MAX_ERROR_DETAILS:
                counters.error_details.append(detail)
            return False

        if inserted:
            counters.inserted += 1
        else:
            counters.updated += 1
        return True

    def _writable_values(self, values: dict[str, Any]) -> dict[str, Any]:
        writable: dict[str, Any] = {}
        for column, value in values.items():
            spec = self.table.columns[column]
            # Failed coercions leave non-nullable columns to their default or current value.
            if value is None and not spec.nullable:
                continue
            writable[column] = value
        return writable

    def _start_run(self) -> SyncRun:
        run = SyncRun(
            spreadsheet_id=self.job.spreadsheet_id,
            sheet_name=self.job.sheet_name,
            target_table=self.table.name,
            status="running",
        )
        self.db.add(run)
        self.db.commit()
        logger.info("Sync run %s started for %s", run.id, self.table.name)
        return run

    def _load_checkpoint(self) -> SyncCheckpoint:
        job = self.job
        checkpoint = self.db.execute(
            select(SyncCheckpoint).where(
                SyncCheckpoint.spreadsheet_id == job.spreadsheet_id,
                SyncCheckpoint.sheet_name == job.sheet_name,
                SyncCheckpoint.target_table == self.table.name,
            )
        ).scalar_one_or_none()
        if checkpoint is None:
            checkpoint = SyncCheckpoint(
                spreadsheet_id=job.spreadsheet_id,
                sheet_name=job.sheet_name,
                target_table=self.table.name,
                last_row_index=-1,
            )
            self.db.add(checkpoint)
            self.db.commit()
        return checkpoint

    def _save_cursor(self, checkpoint: SyncCheckpoint, cursor: int) -> None:
        checkpoint.last_row_index = cursor
        self.db.commit()

    def _finish(self, status: str, error_summary: str | None = None) -> None:
        run = self.run
        if run is None:
            return
        counters = self.counters
        try:
            run.status = status
            run.items_total = counters.total
            run.items_inserted = counters.inserted
            run.items_updated = counters.updated
            run.items_skipped = counters.skipped
            run.items_failed = counters.errors
            run.rows_deleted = counters.deleted
            run.error_summary = error_summary or ("\n".join(counters.error_details[:10]) or None)
            run.finished_at = utc_now()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not record outcome of sync run %s", run.id)
        logger.info(
            "Sync run %s %s: %s inserted, %s updated, %s skipped, %s failed",
            run.id,
            status,
            counters.inserted,
            counters.updated,
            counters.skipped,
            counters.errors,
        )

    def _result(self) -> ResultEvent:
        counters = self.counters
        message = (
            f"Sync complete: {counters.inserted} inserted, {counters.updated} updated, "
            f"{counters.skipped} skipped, {counters.errors} failed"
        )
        return ResultEvent(
            success=True,
            message=message,
            total=counters.total,
            processed=counters.processed,
            inserted=counters.inserted,
            updated=counters.updated,
            skipped=counters.skipped,
            errors=counters.errors,
            deleted=counters.deleted,
            error_details=list(counters.error_details),
        )


def run_sync(db: Session, source: SheetSource, job: SyncJob, settings: Settings | None = None) -> list[SyncEvent]:
    return list(SyncPipeline(db, source, job, settings=settings).events())
