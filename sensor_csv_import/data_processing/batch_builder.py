from __future__ import annotations

import re
from typing import Collection, List, Optional, Sequence

from sensor_csv_import.data_processing.errors import RowFormatError
from sensor_csv_import.data_processing.schemas import ColumnIndex, RecordBatch

# Cells equal to one of these are sent as absent values.
DEFAULT_NULL_VALUES = ("", "null")

TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")
MIN_TIMESTAMP = -(2**63)
MAX_TIMESTAMP = 2**63 - 1


def parse_timestamp(token: str) -> int:
    if not TIMESTAMP_RE.fullmatch(token):
        raise RowFormatError(f"Illegal timestamp {token!r}, expected an integer")
    value = int(token)
    if not MIN_TIMESTAMP <= value <= MAX_TIMESTAMP:
        raise RowFormatError(f"Timestamp {token} is out of the 64-bit range")
    return value


def _cell(row: Sequence[str], position: int, null_values: Collection[str]) -> Optional[str]:
    if position >= len(row):
        return None
    value = row[position]
    if value in null_values:
        return None
    return value


def add_row(
    row: Sequence[str],
    index: ColumnIndex,
    batch: RecordBatch,
    null_values: Collection[str] = DEFAULT_NULL_VALUES,
) -> None:
    """
    Expand one tokenized data row into one entry per device of the index.

    Every device gets an entry even when all of its cells are absent.
    The batch is left untouched when the row's timestamp is invalid.
    """
    if not row:
        raise RowFormatError("Empty data row")
    timestamp = parse_timestamp(row[0])

    entries = []
    for device, positions in index.items():
        measurements: List[str] = list(positions)
        values = [_cell(row, pos, null_values) for pos in positions.values()]
        entries.append((device, measurements, values))

    for device, measurements, values in entries:
        batch.append(device, timestamp, measurements, values)
