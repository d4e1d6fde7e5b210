from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from tourops.core.errors import SheetsApiError
from tourops.sync.sources.base import SheetInfo, SheetSource

FIXTURES_DIR = Path(__file__).resolve().parents[1] / "fixtures"


class FixtureSheetSource(SheetSource):
    """Serves sheets from memory or from a JSON file shaped ``{"sheets": {name: [row, ...]}}``."""

    def __init__(self, sheets: Mapping[str, list[dict[str, str]]] | None = None, path: Path | str | None = None) -> None:
        if sheets is None:
            fixture_path = Path(path) if path else FIXTURES_DIR / "reservations.json"
            payload = json.loads(fixture_path.read_text(encoding="utf-8"))
            sheets = payload.get("sheets", {})
        self._sheets = {name: [dict(row) for row in rows] for name, rows in sheets.items()}

    def list_sheets(self, spreadsheet_id: str) -> list[SheetInfo]:
        infos: list[SheetInfo] = []
        for name, rows in self._sheets.items():
            headers: dict[str, None] = {}
            for row in rows:
                headers.update(dict.fromkeys(row))
            infos.append(SheetInfo(name=name, row_count=len(rows) + 1, column_count=len(headers)))
        return infos

    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[dict[str, str]]:
        if sheet_name not in self._sheets:
            raise SheetsApiError(f"Sheet not found: {sheet_name}", status_code=404)
        return [dict(row) for row in self._sheets[sheet_name]]
