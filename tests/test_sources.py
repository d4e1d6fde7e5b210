import httpx
import pytest

from tourops.core.errors import SheetsApiError
from tourops.sync.sources.base import SheetInfo, column_letters, filter_sheet_names, rows_from_values
from tourops.sync.sources.fixture import FixtureSheetSource
from tourops.sync.sources.google_sheets import GoogleSheetSource, a1_range

API_BASE = "https://sheets.example.com/v4/spreadsheets"


def _response(url: str, status_code: int = 200, json: object | None = None) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("GET", url), json=json if json is not None else {})


def _source(**kwargs) -> GoogleSheetSource:
    return GoogleSheetSource(api_base=API_BASE, api_key="test-key", max_retries=2, retry_backoff_seconds=0, **kwargs)


@pytest.mark.parametrize(("count", "letters"), [(1, "A"), (26, "Z"), (27, "AA"), (52, "AZ"), (53, "BA"), (702, "ZZ")])
def test_column_letters(count: int, letters: str) -> None:
    assert column_letters(count) == letters


def test_column_letters_out_of_range() -> None:
    with pytest.raises(ValueError):
        column_letters(703)


def test_rows_from_values_pads_short_rows() -> None:
    rows = rows_from_values([["id", "name", "note"], ["1", "Kim"], ["2", "Lee", "vip"]])
    assert rows == [{"id": "1", "name": "Kim", "note": ""}, {"id": "2", "name": "Lee", "note": "vip"}]
    assert rows_from_values([]) == []


def test_filter_sheet_names_by_prefix() -> None:
    sheets = [SheetInfo("S_Reservations", 10, 5), SheetInfo("s_team", 3, 2), SheetInfo("Archive", 1, 1)]
    assert [sheet.name for sheet in filter_sheet_names(sheets, "S")] == ["S_Reservations", "s_team"]
    assert len(filter_sheet_names(sheets, "")) == 3


def test_a1_range_quotes_sheet_name() -> None:
    assert a1_range("Tom's Sheet", "AB") == "'Tom''s Sheet'!A:AB"


def test_requires_credentials() -> None:
    with pytest.raises(SheetsApiError):
        GoogleSheetSource(api_base=API_BASE)


def test_read_rows_uses_grid_width(monkeypatch: pytest.MonkeyPatch) -> None:
    source = _source()
    requested: list[tuple[str, dict]] = []

    def fake_get(url: str, params: dict | None = None) -> httpx.Response:
        requested.append((url, dict(params or {})))
        if "/values/" in url:
            return _response(url, json={"values": [["예약번호", "성인수"], ["R-1", "2"], ["R-2"]]})
        return _response(
            url,
            json={
                "sheets": [
                    {"properties": {"title": "S_Reservations", "gridProperties": {"rowCount": 3, "columnCount": 30}}},
                ]
            },
        )

    monkeypatch.setattr(source.client, "get", fake_get)

    rows = source.read_rows("sheet-1", "S_Reservations")

    assert rows == [{"예약번호": "R-1", "성인수": "2"}, {"예약번호": "R-2", "성인수": ""}]
    values_url, values_params = requested[-1]
    assert values_url.endswith("/values/%27S_Reservations%27%21A%3AAD")
    assert values_params == {"key": "test-key"}


def test_narrow_sheets_still_read_26_columns(monkeypatch: pytest.MonkeyPatch) -> None:
    source = _source()
    urls: list[str] = []

    def fake_get(url: str, params: dict | None = None) -> httpx.Response:
        urls.append(url)
        if "/values/" in url:
            return _response(url, json={"values": [["id"]]})
        return _response(url, json={"sheets": [{"properties": {"title": "S1", "gridProperties": {"columnCount": 3}}}]})

    monkeypatch.setattr(source.client, "get", fake_get)

    assert source.read_rows("sheet-1", "S1") == []
    assert urls[-1].endswith("%21A%3AZ")


def test_retries_on_retryable_status(monkeypatch: pytest.MonkeyPatch) -> None:
    source = _source()
    calls = {"count": 0}

    def fake_get(url: str, params: dict | None = None) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return _response(url, status_code=503)
        if calls["count"] == 2:
            raise httpx.ReadTimeout("timeout", request=httpx.Request("GET", url))
        return _response(url, json={"sheets": [{"properties": {"title": "S1", "gridProperties": {"rowCount": 5, "columnCount": 4}}}]})

    monkeypatch.setattr(source.client, "get", fake_get)

    sheets = source.list_sheets("sheet-1")
    assert calls["count"] == 3
    assert sheets == [SheetInfo(name="S1", row_count=5, column_count=4)]


def test_gives_up_after_max_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    source = _source()
    calls = {"count": 0}

    def fake_get(url: str, params: dict | None = None) -> httpx.Response:
        calls["count"] += 1
        return _response(url, status_code=429)

    monkeypatch.setattr(source.client, "get", fake_get)

    with pytest.raises(SheetsApiError, match="after 3 attempts"):
        source.list_sheets("sheet-1")
    assert calls["count"] == 3


def test_non_retryable_status_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    source = _source()
    calls = {"count": 0}

    def fake_get(url: str, params: dict | None = None) -> httpx.Response:
        calls["count"] += 1
        return _response(url, status_code=403)

    monkeypatch.setattr(source.client, "get", fake_get)

    with pytest.raises(SheetsApiError) as excinfo:
        source.list_sheets("sheet-1")
    assert excinfo.value.status_code == 403
    assert calls["count"] == 1


def test_protocol_errors_are_retried_then_wrapped() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.RemoteProtocolError("peer closed connection", request=request)

    source = _source(client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(SheetsApiError, match="after 3 attempts"):
        source.list_sheets("sheet-1")
    assert calls["count"] == 3


def test_non_json_body_raises_sheets_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Service login</html>")

    source = _source(client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(SheetsApiError, match="non-JSON"):
        source.list_sheets("sheet-1")


def test_fixture_source_reads_bundled_sheets() -> None:
    source = FixtureSheetSource()
    names = {sheet.name for sheet in source.list_sheets("any")}
    assert names == {"S_Reservations", "S_Team"}
    assert len(source.read_rows("any", "S_Reservations")) == 3

    with pytest.raises(SheetsApiError) as excinfo:
        source.read_rows("any", "Missing")
    assert excinfo.value.status_code == 404
