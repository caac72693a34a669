from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sensor_csv_import.data_processing.errors import TransportError
from sensor_csv_import.storage.sqlite_store import SqliteStore, validate_time_zone


def test_insert_records_skips_nulls_and_counts_points(store):
    written = store.insert_records(
        ["root.sg1", "root.sg2"],
        [1, 1],
        [["s1", "s2"], ["s1"]],
        [["10", None], ["30"]],
    )
    assert written == 2
    assert store.count_points() == 2
    assert store.fetch_series("root.sg2", "s1") == [(1, "30")]


def test_same_point_is_overwritten(store):
    store.insert_records(["d"], [5], [["s"]], [["1"]])
    store.insert_records(["d"], [5], [["s"]], [["2"]])
    assert store.fetch_series("d", "s") == [(5, "2")]


def test_empty_batch_writes_nothing(store):
    assert store.insert_records([], [], [], []) == 0
    assert store.count_points() == 0


def test_misaligned_lists_are_rejected(store):
    with pytest.raises(ValueError):
        store.insert_records(["d", "e"], [1], [["s"]], [["1"]])


def test_closed_store_raises_transport_error(tmp_path: Path):
    s = SqliteStore(tmp_path / "x.db")
    with pytest.raises(TransportError):
        s.insert_records(["d"], [1], [["s"]], [["1"]])


def test_context_manager_opens_and_closes(tmp_path: Path):
    db = tmp_path / "sub" / "x.db"
    with SqliteStore(db) as s:
        assert s.is_open
        s.insert_records(["d"], [1], [["s"]], [["1"]])
    assert not s.is_open
    assert db.exists()

    con = sqlite3.connect(str(db))
    try:
        assert con.execute("SELECT device, measurement, ts, value FROM records").fetchall() == [("d", "s", 1, "1")]
    finally:
        con.close()


def test_open_failure_is_transport_error(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(TransportError):
        SqliteStore(blocker / "x.db").open()


def test_set_time_zone_is_recorded(store):
    store.set_time_zone("+08:00")
    assert store.time_zone == "+08:00"
    con = sqlite3.connect(str(store.db_path))
    try:
        row = con.execute("SELECT value FROM session_meta WHERE key = 'time_zone'").fetchone()
    finally:
        con.close()
    assert row == ("+08:00",)


@pytest.mark.parametrize("tz", ["+08:00", "-01:00", "+00:00", "-23:59"])
def test_validate_offsets(tz):
    assert validate_time_zone(tz) == tz


@pytest.mark.parametrize("tz", ["+24:00", "8", "nowhere/land", "+08:60"])
def test_validate_rejects_unknown_zones(tz):
    with pytest.raises(ValueError):
        validate_time_zone(tz)
