from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser
from rapidfuzz import fuzz, process
from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Integer, Numeric, Table

from tourops.core.errors import UnknownTableError
from tourops.db.base import Base
from tourops.models import (
    Channel,
    Customer,
    PaymentRecord,
    Product,
    ProductOptionChoice,
    Reservation,
    ReservationExpense,
    TeamMember,
    Tour,
    TourExpense,
)

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "1", "yes", "y", "t"}
FALSE_VALUES = {"false", "0", "no", "n", "f"}
NUMBER_NOISE_RE = re.compile(r"[,\s$₩]")
LIST_EDGE_RE = re.compile(r"^[\[\"']+|[\]\"']+$")

# Common Korean sheet headers used by the operations spreadsheets.
KOREAN_HEADER_ALIASES = {
    "예약번호": "id",
    "고객명": "name",
    "이름": "name_ko",
    "이메일": "email",
    "전화번호": "phone",
    "성인수": "adults",
    "아동수": "child",
    "유아수": "infant",
    "총인원": "total_people",
    "투어날짜": "tour_date",
    "투어시간": "tour_time",
    "상품ID": "product_id",
    "투어ID": "tour_id",
    "픽업호텔": "pickup_hotel",
    "픽업시간": "pickup_time",
    "채널": "channel_id",
    "채널RN": "channel_rn",
    "추가자": "added_by",
    "상태": "status",
    "투어상태": "tour_status",
    "비고": "event_note",
    "특이사항": "event_note",
    "개인투어": "is_private_tour",
    "가이드": "tour_guide_id",
    "어시스턴트": "assistant_id",
    "선택옵션": "selected_options",
    "옵션가격": "selected_option_prices",
    "금액": "amount",
}

SYNC_MODELS: tuple[type[Base], ...] = (
    Reservation,
    Tour,
    Customer,
    TeamMember,
    Product,
    Channel,
    ProductOptionChoice,
    TourExpense,
    ReservationExpense,
    PaymentRecord,
)


class CoercionError(ValueError):
    pass


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    kind: str
    nullable: bool
    primary_key: bool


@dataclass(frozen=True)
class TableSpec:
    name: str
    model: type[Base]
    primary_key: str
    columns: dict[str, ColumnSpec]

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def pk_column(self) -> Column:
        return self.table.c[self.primary_key]

    @classmethod
    def from_model(cls, model: type[Base]) -> TableSpec:
        table: Table = model.__table__
        primary_keys = list(table.primary_key.columns)
        if len(primary_keys) != 1:
            raise ValueError(f"Sync tables need a single-column primary key: {table.name}")
        columns = {
            column.name: ColumnSpec(
                name=column.name,
                kind=column_kind(column),
                nullable=bool(column.nullable),
                primary_key=bool(column.primary_key),
            )
            for column in table.columns
        }
        return cls(name=table.name, model=model, primary_key=primary_keys[0].name, columns=columns)


def column_kind(column: Column) -> str:
    column_type = column.type
    if isinstance(column_type, Boolean):
        return "boolean"
    if isinstance(column_type, Integer):
        return "integer"
    if isinstance(column_type, Numeric):
        return "numeric"
    if isinstance(column_type, DateTime):
        return "datetime"
    if isinstance(column_type, Date):
        return "date"
    if isinstance(column_type, JSON):
        return "list" if column.info.get("json_shape") == "list" else "json"
    return "string"


SYNC_TABLES: dict[str, TableSpec] = {model.__tablename__: TableSpec.from_model(model) for model in SYNC_MODELS}


def get_table_spec(name: str) -> TableSpec:
    spec = SYNC_TABLES.get(name)
    if spec is None:
        raise UnknownTableError(name)
    return spec


@dataclass
class TransformedRow:
    index: int
    values: dict[str, Any]
    warnings: list[str] = field(default_factory=list)

    @property
    def sheet_row(self) -> int:
        # Row 1 of the sheet is the header.
        return self.index + 2


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        number = Decimal(NUMBER_NOISE_RE.sub("", str(value)))
    except (InvalidOperation, ValueError) as exc:
        raise CoercionError("is not a number") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise CoercionError("is not a whole number")
    return int(number)


def _to_numeric(value: Any) -> Decimal:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        number = Decimal(str(value))
    else:
        try:
            number = Decimal(NUMBER_NOISE_RE.sub("", str(value)))
        except InvalidOperation as exc:
            raise CoercionError("is not a number") from exc
    if not number.is_finite():
        raise CoercionError("is not a finite number")
    return number


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise CoercionError("is not a boolean")


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.parse(str(value).strip())
    except (ValueError, OverflowError) as exc:
        raise CoercionError("is not a date") from exc


def _to_date(value: Any) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return _parse_datetime(value).date()


def _to_datetime(value: Any) -> datetime:
    parsed = _parse_datetime(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_json(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return value
    try:
        parsed = json.loads(str(value))
    except json.JSONDecodeError as exc:
        raise CoercionError("is not valid JSON") from exc
    if not isinstance(parsed, (dict, list)):
        raise CoercionError("is not a JSON object")
    return parsed


def _to_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if str(item)]
    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item) for item in parsed if str(item)]
    parts = (LIST_EDGE_RE.sub("", part.strip()) for part in text.split(","))
    return [part for part in parts if part]


def _to_string(value: Any) -> str:
    return str(value).strip()


COERCERS = {
    "integer": _to_integer,
    "numeric": _to_numeric,
    "boolean": _to_boolean,
    "date": _to_date,
    "datetime": _to_datetime,
    "json": _to_json,
    "list": _to_list,
    "string": _to_string,
}


def coerce_value(value: Any, kind: str) -> Any:
    return COERCERS[kind](value)


def unknown_mapping_targets(column_mapping: Mapping[str, str], table: TableSpec) -> list[str]:
    return sorted({target for target in column_mapping.values() if target not in table.columns})


def transform_rows(
    rows: Iterable[Mapping[str, Any]],
    column_mapping: Mapping[str, str],
    table: TableSpec,
) -> Iterator[TransformedRow]:
    """Map sheet rows onto ``table`` columns.

    Unmapped sheet columns and blank cells are dropped. A value that cannot be
    coerced to its column type becomes ``None`` and adds a warning; the row itself
    is always produced.
    """
    mapping = {sheet_column: target for sheet_column, target in column_mapping.items() if target in table.columns}
    for index, row in enumerate(rows):
        values: dict[str, Any] = {}
        warnings: list[str] = []
        for sheet_column, target in mapping.items():
            raw = row.get(sheet_column)
            if _is_blank(raw):
                continue
            try:
                values[target] = coerce_value(raw, table.columns[target].kind)
            except CoercionError as exc:
                values[target] = None
                warnings.append(f"Row {index + 2}: {target}={raw!r} {exc}, stored as null")
        yield TransformedRow(index=index, values=values, warnings=warnings)


def _normalize_header(value: str) -> str:
    return re.sub(r"[\s\-]+", "_", value.strip().lower())


def suggest_column_mapping(sheet_columns: Iterable[str], table: TableSpec, score_cutoff: float = 85) -> dict[str, str]:
    column_names = list(table.columns)
    suggested: dict[str, str] = {}
    for sheet_column in sheet_columns:
        if not sheet_column or not sheet_column.strip():
            continue
        normalized = _normalize_header(sheet_column)

        exact = next((name for name in column_names if name.lower() == normalized), None)
        if exact:
            suggested[sheet_column] = exact
            continue

        alias = KOREAN_HEADER_ALIASES.get(sheet_column.strip())
        if alias and alias in table.columns:
            suggested[sheet_column] = alias
            continue

        partial = next(
            (
                name
                for name in column_names
                if len(name) > 2 and len(normalized) > 2 and (name in normalized or normalized in name)
            ),
            None,
        )
        if partial:
            suggested[sheet_column] = partial
            continue

        match = process.extractOne(normalized, column_names, scorer=fuzz.ratio, score_cutoff=score_cutoff)
        if match:
            suggested[sheet_column] = match[0]
    return suggested
