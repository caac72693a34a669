from __future__ import annotations

import logging
import re
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sensor_csv_import.data_processing.errors import TransportError
from sensor_csv_import.data_processing.schemas import RecordBatch

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS records (
  device      TEXT    NOT NULL,
  measurement TEXT    NOT NULL,
  ts          INTEGER NOT NULL,
  value       TEXT,
  PRIMARY KEY (device, measurement, ts)
) WITHOUT ROWID;
CREATE TABLE IF NOT EXISTS session_meta (
  key   TEXT PRIMARY KEY,
  value TEXT
);
"""

INSERT_SQL = "INSERT OR REPLACE INTO records(device, measurement, ts, value) VALUES (?,?,?,?)"

OFFSET_RE = re.compile(r"[+-](?:[01][0-9]|2[0-3]):[0-5][0-9]")


def validate_time_zone(tz: str) -> str:
    """Accept ``+08:00`` style offsets or IANA zone names; raise ValueError otherwise."""
    tz = str(tz).strip()
    if OFFSET_RE.fullmatch(tz):
        return tz
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone {tz!r}, use e.g. +08:00 or -01:00") from e
    return tz


class SqliteStore:
    """
    Record store backed by a single SQLite file.

    Receives one whole-file batch per ``insert_records`` call and writes it
    in one transaction. Null values are not stored.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self._con: Optional[sqlite3.Connection] = None
        self.time_zone: Optional[str] = None

    def __enter__(self) -> "SqliteStore":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._con is not None

    def open(self) -> None:
        if self._con is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            con = sqlite3.connect(str(self.db_path))
            con.executescript(SCHEMA_SQL)
        except (sqlite3.Error, OSError) as e:
            raise TransportError(f"Cannot open store {self.db_path}: {e}") from e
        self._con = con
        log.debug("Opened store %s", self.db_path)

    def close(self) -> None:
        if self._con is None:
            return
        try:
            self._con.close()
        except sqlite3.Error as e:
            raise TransportError(f"Store {self.db_path} can not be closed: {e}") from e
        finally:
            self._con = None
        log.debug("Closed store %s", self.db_path)

    def _connection(self) -> sqlite3.Connection:
        if self._con is None:
            raise TransportError(f"Store {self.db_path} is not open")
        return self._con

    def set_time_zone(self, tz: str) -> None:
        tz = validate_time_zone(tz)
        con = self._connection()
        try:
            with con:
                con.execute(
                    "INSERT OR REPLACE INTO session_meta(key, value) VALUES ('time_zone', ?)", (tz,)
                )
        except sqlite3.Error as e:
            raise TransportError(f"Cannot set time zone: {e}") from e
        self.time_zone = tz

    def insert_records(
        self,
        devices: Sequence[str],
        timestamps: Sequence[int],
        measurements_list: Sequence[Sequence[str]],
        values_list: Sequence[Sequence[Optional[str]]],
    ) -> int:
        """Write all non-null points; returns how many were written."""
        lengths = {len(devices), len(timestamps), len(measurements_list), len(values_list)}
        if len(lengths) != 1:
            raise ValueError(
                "devices, timestamps, measurements_list and values_list must have the same length"
            )
        con = self._connection()

        batch = RecordBatch()
        for device, ts, measurements, values in zip(devices, timestamps, measurements_list, values_list):
            batch.append(device, ts, measurements, values)
        frame = batch.to_frame().dropna(subset=["value"])
        rows = list(
            zip(
                frame["device"].tolist(),
                frame["measurement"].tolist(),
                frame["timestamp"].tolist(),
                frame["value"].tolist(),
            )
        )

        try:
            with con:
                con.executemany(INSERT_SQL, rows)
        except sqlite3.Error as e:
            raise TransportError(f"Insert into {self.db_path} failed: {e}") from e
        log.debug("Wrote %d points to %s", len(rows), self.db_path)
        return len(rows)

    def count_points(self) -> int:
        cur = self._connection().execute("SELECT COUNT(*) FROM records")
        return int(cur.fetchone()[0])

    def fetch_series(self, device: str, measurement: str) -> List[Tuple[int, str]]:
        cur = self._connection().execute(
            "SELECT ts, value FROM records WHERE device = ? AND measurement = ? ORDER BY ts",
            (device, measurement),
        )
        return [(int(ts), value) for ts, value in cur.fetchall()]
