from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

MIN_READ_COLUMNS = 26
MAX_READ_COLUMNS = 702


@dataclass
class SheetInfo:
    name: str
    row_count: int
    column_count: int


class SheetSource(ABC):
    @abstractmethod
    def list_sheets(self, spreadsheet_id: str) -> list[SheetInfo]:
        raise NotImplementedError

    @abstractmethod
    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[dict[str, str]]:
        raise NotImplementedError


def column_letters(count: int) -> str:
    """Last column letter for ``count`` columns (1 -> A, 26 -> Z, 27 -> AA, 702 -> ZZ)."""
    if count < 1 or count > MAX_READ_COLUMNS:
        raise ValueError(f"Column count out of range: {count}")
    if count <= 26:
        return chr(64 + count)
    return chr(64 + (count - 1) // 26) + chr(64 + (count - 1) % 26 + 1)


def rows_from_values(values: Sequence[Sequence[object]]) -> list[dict[str, str]]:
    """First row is the header; missing trailing cells become empty strings."""
    if not values:
        return []
    headers = [str(header) for header in values[0]]
    rows: list[dict[str, str]] = []
    for raw in values[1:]:
        row = {}
        for index, header in enumerate(headers):
            cell = raw[index] if index < len(raw) else ""
            row[header] = "" if cell is None else str(cell)
        rows.append(row)
    return rows


def filter_sheet_names(sheets: list[SheetInfo], prefix: str) -> list[SheetInfo]:
    if not prefix:
        return list(sheets)
    wanted = prefix.upper()
    return [sheet for sheet in sheets if sheet.name.upper().startswith(wanted)]
