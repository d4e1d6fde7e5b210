from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from tourops.core.errors import UnknownTableError
from tourops.sync.transform import (
    SYNC_TABLES,
    CoercionError,
    coerce_value,
    get_table_spec,
    suggest_column_mapping,
    transform_rows,
    unknown_mapping_targets,
)

RESERVATION_MAPPING = {
    "예약번호": "id",
    "상품ID": "product_id",
    "투어날짜": "tour_date",
    "성인수": "adults",
    "개인투어": "is_private_tour",
    "선택옵션": "selected_options",
}


def test_registry_covers_sync_tables() -> None:
    assert set(SYNC_TABLES) == {
        "reservations",
        "tours",
        "customers",
        "team",
        "products",
        "channels",
        "product_option_choices",
        "tour_expenses",
        "reservation_expenses",
        "payment_records",
    }
    assert get_table_spec("team").primary_key == "email"
    assert get_table_spec("reservations").primary_key == "id"


def test_unknown_table() -> None:
    with pytest.raises(UnknownTableError):
        get_table_spec("sync_runs")


def test_column_kinds_follow_model_types() -> None:
    columns = get_table_spec("reservations").columns
    assert columns["adults"].kind == "integer"
    assert columns["tour_date"].kind == "date"
    assert columns["is_private_tour"].kind == "boolean"
    assert columns["selected_options"].kind == "json"
    assert columns["created_at"].kind == "datetime"
    assert get_table_spec("team").columns["languages"].kind == "list"
    assert get_table_spec("products").columns["base_price"].kind == "numeric"


@pytest.mark.parametrize(
    ("raw", "kind", "expected"),
    [
        ("42", "integer", 42),
        ("1,200", "integer", 1200),
        ("$1,234.50", "numeric", Decimal("1234.50")),
        ("TRUE", "boolean", True),
        ("yes", "boolean", True),
        ("0", "boolean", False),
        ("2025-03-14", "date", date(2025, 3, 14)),
        ("3/15/2025", "date", date(2025, 3, 15)),
        ("2025-03-14 09:30", "datetime", datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)),
        ('{"a": ["b"]}', "json", {"a": ["b"]}),
        ("ko, en", "list", ["ko", "en"]),
        ('["ko", "ja"]', "list", ["ko", "ja"]),
        ("  Kim  ", "string", "Kim"),
    ],
)
def test_coerce_value(raw, kind, expected) -> None:
    assert coerce_value(raw, kind) == expected


@pytest.mark.parametrize(
    ("raw", "kind"),
    [
        ("two", "integer"),
        ("2.5", "integer"),
        ("NaN", "integer"),
        ("abc", "numeric"),
        ("Infinity", "numeric"),
        (float("nan"), "numeric"),
        ("maybe", "boolean"),
        ("not a date", "date"),
        ("[1", "json"),
    ],
)
def test_coerce_value_rejects(raw, kind) -> None:
    with pytest.raises(CoercionError):
        coerce_value(raw, kind)


def test_transform_drops_unmapped_and_blank_cells() -> None:
    rows = [{"예약번호": "R-1", "상품ID": "", "메모": "ignored", "성인수": "2"}]
    (row,) = transform_rows(rows, RESERVATION_MAPPING, get_table_spec("reservations"))
    assert row.values == {"id": "R-1", "adults": 2}
    assert row.warnings == []
    assert row.sheet_row == 2


def test_invalid_values_become_null_with_warning() -> None:
    rows = [{"예약번호": "R-3", "투어날짜": "not a date", "성인수": "two"}]
    (row,) = transform_rows(rows, RESERVATION_MAPPING, get_table_spec("reservations"))
    assert row.values == {"id": "R-3", "tour_date": None, "adults": None}
    assert len(row.warnings) == 2
    assert all(warning.startswith("Row 2:") for warning in row.warnings)


def test_transform_is_lazy() -> None:
    def rows():
        yield {"예약번호": "R-1"}
        raise AssertionError("read past the first row")

    first = next(transform_rows(rows(), RESERVATION_MAPPING, get_table_spec("reservations")))
    assert first.values == {"id": "R-1"}


def test_unknown_mapping_targets() -> None:
    table = get_table_spec("team")
    assert unknown_mapping_targets({"Email": "email", "Nick": "nickname", "Other": "nickname"}, table) == ["nickname"]


def test_suggest_column_mapping() -> None:
    mapping = suggest_column_mapping(
        ["예약번호", "Tour Date", "성인수", "Pickup Hotel Name", "Pickup Hotle", "???", ""],
        get_table_spec("reservations"),
    )
    assert mapping["예약번호"] == "id"
    assert mapping["Tour Date"] == "tour_date"
    assert mapping["성인수"] == "adults"
    assert mapping["Pickup Hotel Name"] == "pickup_hotel"
    assert mapping["Pickup Hotle"] == "pickup_hotel"
    assert "???" not in mapping


def test_suggest_skips_aliases_missing_from_table() -> None:
    mapping = suggest_column_mapping(["성인수", "Email"], get_table_spec("team"))
    assert mapping == {"Email": "email"}


def test_fractional_headcount_becomes_null_with_warning() -> None:
    rows = [{"예약번호": "R-4", "성인수": "2.5"}]
    (row,) = transform_rows(rows, RESERVATION_MAPPING, get_table_spec("reservations"))
    assert row.values == {"id": "R-4", "adults": None}
    assert row.warnings == ["Row 2: adults='2.5' is not a whole number, stored as null"]


def test_whole_number_with_decimal_point_is_accepted() -> None:
    assert coerce_value("3.0", "integer") == 3
