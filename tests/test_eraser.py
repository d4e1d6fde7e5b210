import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from tourops.models import TeamMember
from tourops.sync.eraser import ChunkedTableEraser, delete_in_chunks, is_timeout_error
from tourops.sync.transform import get_table_spec


def _add_team(session, count: int) -> None:
    session.add_all([TeamMember(email=f"guide{i}@example.com", name_en=f"Guide {i}") for i in range(count)])
    session.commit()


def _team_count(session) -> int:
    return session.execute(select(func.count()).select_from(TeamMember)).scalar_one()


def _timeout() -> OperationalError:
    return OperationalError("DELETE FROM team", {}, Exception("canceling statement due to statement timeout"))


def _record_chunk_sizes(monkeypatch: pytest.MonkeyPatch, eraser: ChunkedTableEraser) -> list[int]:
    sizes: list[int] = []
    original = eraser._select_keys

    def select_keys(limit: int):
        sizes.append(limit)
        return original(limit)

    monkeypatch.setattr(eraser, "_select_keys", select_keys)
    return sizes


def test_deletes_1200_rows_in_three_round_trips(session) -> None:
    _add_team(session, 1200)
    messages: list[str] = []
    eraser = ChunkedTableEraser(session, get_table_spec("team"), on_progress=messages.append)

    result = eraser.delete_in_chunks(500)

    assert result.success is True
    assert result.deleted_count == 1200
    assert result.error is None
    assert eraser.round_trips == 3
    assert _team_count(session) == 0
    assert messages == ["Deleted 1000 rows from team"]


@pytest.mark.parametrize("count", [0, 1, 499, 500, 1000, 1001])
def test_deleted_count_matches_row_count(session, count: int) -> None:
    _add_team(session, count)
    result = delete_in_chunks(session, "team", chunk_size=500)
    assert result.success is True
    assert result.deleted_count == count
    assert _team_count(session) == 0


def test_timeout_halves_chunk_size(session, monkeypatch: pytest.MonkeyPatch) -> None:
    _add_team(session, 600)
    messages: list[str] = []
    eraser = ChunkedTableEraser(session, get_table_spec("team"), on_progress=messages.append)
    sizes = _record_chunk_sizes(monkeypatch, eraser)
    original_delete = eraser._delete_keys
    calls = {"count": 0}

    def delete_keys(keys):
        calls["count"] += 1
        if calls["count"] == 1:
            raise _timeout()
        return original_delete(keys)

    monkeypatch.setattr(eraser, "_delete_keys", delete_keys)

    result = eraser.delete_in_chunks(500)

    assert result.success is True
    assert result.deleted_count == 600
    assert sizes[:2] == [500, 250]
    assert set(sizes[1:]) == {250}
    assert messages == ["Delete timed out, retrying with chunk size 250"]


def test_repeated_timeouts_floor_at_minimum(session, monkeypatch: pytest.MonkeyPatch) -> None:
    _add_team(session, 300)
    eraser = ChunkedTableEraser(session, get_table_spec("team"))
    sizes = _record_chunk_sizes(monkeypatch, eraser)

    def delete_keys(keys):
        raise _timeout()

    monkeypatch.setattr(eraser, "_delete_keys", delete_keys)

    result = eraser.delete_in_chunks(500)

    assert sizes == [500, 250, 125, 100]
    assert result.success is False
    assert result.deleted_count == 0
    assert "statement timeout" in result.error
    assert _team_count(session) == 300


def test_other_errors_stop_with_accurate_count(session, monkeypatch: pytest.MonkeyPatch) -> None:
    _add_team(session, 1200)
    eraser = ChunkedTableEraser(session, get_table_spec("team"))
    original_delete = eraser._delete_keys
    calls = {"count": 0}

    def delete_keys(keys):
        calls["count"] += 1
        if calls["count"] == 2:
            raise OperationalError("DELETE FROM team", {}, Exception("disk I/O error"))
        return original_delete(keys)

    monkeypatch.setattr(eraser, "_delete_keys", delete_keys)

    result = eraser.delete_in_chunks(500)

    assert result.success is False
    assert result.deleted_count == 500
    assert _team_count(session) == 700


def test_attempt_ceiling(session) -> None:
    _add_team(session, 10)
    result = ChunkedTableEraser(session, get_table_spec("team"), max_attempts=3).delete_in_chunks(2)
    assert result.success is False
    assert result.deleted_count == 6
    assert "3 delete attempts" in result.error


def test_timeout_pattern() -> None:
    assert is_timeout_error(Exception("ERROR: canceling statement due to statement timeout (SQLSTATE 57014)"))
    assert is_timeout_error(Exception("Query timed out"))
    assert not is_timeout_error(Exception("permission denied for table team"))
