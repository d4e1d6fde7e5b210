from __future__ import annotations

import argparse
import json
import logging
import sys

from tourops.core.config import get_settings
from tourops.core.errors import SheetsApiError, TableLockedError, UnknownTableError
from tourops.core.locks import table_locks
from tourops.db.session import SessionLocal
from tourops.sync.events import ResultEvent, encode_event
from tourops.sync.pipeline import SyncJob, SyncPipeline
from tourops.sync.sources.base import SheetSource
from tourops.sync.sources.fixture import FixtureSheetSource
from tourops.sync.sources.google_sheets import GoogleSheetSource

logger = logging.getLogger(__name__)


def build_source(mode: str, fixture_path: str | None = None) -> SheetSource:
    if mode == "fixture":
        return FixtureSheetSource(path=fixture_path)
    return GoogleSheetSource.from_settings()


def run_once(job: SyncJob, source: SheetSource) -> bool:
    with table_locks.hold(job.target_table), SessionLocal() as db:
        succeeded = False
        for event in SyncPipeline(db, source, job).events():
            sys.stdout.write(encode_event(event))
            sys.stdout.flush()
            if isinstance(event, ResultEvent):
                succeeded = event.success
        return succeeded


def parse_mapping(raw: str) -> dict[str, str]:
    mapping = json.loads(raw)
    if not isinstance(mapping, dict) or not mapping:
        raise ValueError("--mapping must be a non-empty JSON object")
    return {str(key): str(value) for key, value in mapping.items()}


def main() -> None:
    parser = argparse.ArgumentParser(description="TourOps spreadsheet sync")
    parser.add_argument("--spreadsheet-id", required=True)
    parser.add_argument("--sheet", required=True)
    parser.add_argument("--table", required=True)
    parser.add_argument("--mapping", required=True, help='JSON object of sheet column to table column, e.g. {"예약번호": "id"}')
    parser.add_argument("--mode", default="live", choices=["live", "fixture"])
    parser.add_argument("--fixture", default=None, help="Fixture JSON file for --mode fixture")
    parser.add_argument("--truncate", action="store_true", help="Delete every row of the table before writing")
    parser.add_argument("--incremental", action="store_true", help="Skip rows already applied by a previous run")

    args = parser.parse_args()
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        mapping = parse_mapping(args.mapping)
    except ValueError as exc:
        parser.error(str(exc))

    job = SyncJob(
        spreadsheet_id=args.spreadsheet_id,
        sheet_name=args.sheet,
        target_table=args.table,
        column_mapping=mapping,
        enable_incremental_sync=args.incremental,
        truncate_table=args.truncate,
    )
    try:
        succeeded = run_once(job, build_source(args.mode, args.fixture))
    except (UnknownTableError, TableLockedError, SheetsApiError) as exc:
        logger.error("%s", exc)
        sys.exit(2)
    sys.exit(0 if succeeded else 1)


if __name__ == "__main__":
    main()
