from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Sequence

from sensor_csv_import.data_processing.column_paths import decompose
from sensor_csv_import.data_processing.schemas import ColumnIndex, ColumnPath

# header column 0 holds the timestamp label
TIMESTAMP_POSITION = 0


def add_column(index: Dict[str, Dict[str, int]], path: ColumnPath) -> None:
    # re-assigning an existing key keeps its original place in the dict
    index.setdefault(path.device, {})[path.measurement] = path.position


def build_index(header_fields: Sequence[str], start_position: int = TIMESTAMP_POSITION + 1) -> ColumnIndex:
    """
    Group header columns by device, recording each measurement's column position.

    The result is a read-only view; it is shared by every data row of the file.
    """
    index: Dict[str, Dict[str, int]] = {}
    for position in range(start_position, len(header_fields)):
        add_column(index, decompose(header_fields[position], position))
    return MappingProxyType({device: MappingProxyType(m) for device, m in index.items()})
