from __future__ import annotations

import logging
import re
from collections.abc import Callable, Generator
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourops.core.config import get_settings
from tourops.sync.transform import TableSpec, get_table_spec

logger = logging.getLogger(__name__)

TIMEOUT_PATTERN = re.compile(r"timeout|timed out|statement timeout|canceling statement|57014", re.IGNORECASE)

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True)
class EraseResult:
    success: bool
    deleted_count: int
    error: str | None = None


@dataclass(frozen=True)
class EraseNotice:
    message: str
    backoff: bool = False


def is_timeout_error(exc: BaseException) -> bool:
    return bool(TIMEOUT_PATTERN.search(str(exc)))


class ChunkedTableEraser:
    """Delete every row of a table in bounded, individually committed batches.

    A batch that fails with a timeout is retried with half the chunk size, down to
    ``min_chunk_size``. Rows already deleted stay deleted when a later batch fails,
    and ``deleted_count`` always reflects them.

    ``iter_delete`` yields an ``EraseNotice`` between batches and leaves the outcome
    in ``result``; ``delete_in_chunks`` drains it and hands notices to ``on_progress``.
    """

    def __init__(
        self,
        db: Session,
        table: TableSpec,
        on_progress: ProgressCallback | None = None,
        min_chunk_size: int | None = None,
        max_attempts: int | None = None,
        progress_every: int | None = None,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.table = table
        self.on_progress = on_progress
        self.min_chunk_size = min_chunk_size or settings.sync_min_delete_chunk_size
        self.max_attempts = max_attempts or settings.sync_delete_max_attempts
        self.progress_every = progress_every or settings.sync_delete_progress_every
        self.round_trips = 0
        self.result: EraseResult | None = None
        self._deleted = 0
        self._next_report = self.progress_every

    def delete_in_chunks(self, chunk_size: int = 500) -> EraseResult:
        for notice in self.iter_delete(chunk_size):
            if self.on_progress is not None:
                self.on_progress(notice.message)
        return self.result

    def iter_delete(self, chunk_size: int = 500) -> Generator[EraseNotice, None, None]:
        self.round_trips = 0
        self.result = None
        self._deleted = 0
        self._next_report = self.progress_every
        self.result = yield from self._run(max(chunk_size, 1))

    def _run(self, chunk_size: int) -> Generator[EraseNotice, None, EraseResult]:
        attempts = 0
        while attempts < self.max_attempts:
            attempts += 1
            try:
                keys = self._select_keys(chunk_size)
                if not keys:
                    return EraseResult(success=True, deleted_count=self._deleted)
                self._delete_keys(keys)
            except SQLAlchemyError as exc:
                self.db.rollback()
                if is_timeout_error(exc) and chunk_size > self.min_chunk_size:
                    smaller = max(chunk_size // 2, self.min_chunk_size)
                    logger.warning("Delete from %s timed out at chunk size %s, retrying with %s", self.table.name, chunk_size, smaller)
                    yield EraseNotice(f"Delete timed out, retrying with chunk size {smaller}", backoff=True)
                    return (yield from self._run(smaller))
                logger.error("Delete from %s failed after %s rows: %s", self.table.name, self._deleted, exc)
                return EraseResult(success=False, deleted_count=self._deleted, error=str(exc))

            self._deleted += len(keys)
            if self._deleted >= self._next_report:
                while self._next_report <= self._deleted:
                    self._next_report += self.progress_every
                yield EraseNotice(f"Deleted {self._deleted} rows from {self.table.name}")
            if len(keys) < chunk_size:
                return EraseResult(success=True, deleted_count=self._deleted)

        message = f"Gave up after {self.max_attempts} delete attempts"
        logger.error("%s on %s", message, self.table.name)
        return EraseResult(success=False, deleted_count=self._deleted, error=message)

    def _select_keys(self, limit: int) -> list[object]:
        pk = self.table.pk_column
        return list(self.db.execute(select(pk).limit(limit)).scalars())

    def _delete_keys(self, keys: list[object]) -> None:
        self.round_trips += 1
        self.db.execute(delete(self.table.table).where(self.table.pk_column.in_(keys)))
        self.db.commit()


def delete_in_chunks(db: Session, table: str, chunk_size: int = 500) -> EraseResult:
    return ChunkedTableEraser(db, get_table_spec(table)).delete_in_chunks(chunk_size)
