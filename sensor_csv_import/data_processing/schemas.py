from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

import pandas as pd

PATH_SEPARATOR = "."

# device -> measurement -> column position in the data rows
ColumnIndex = Mapping[str, Mapping[str, int]]

FRAME_COLUMNS = ["timestamp", "device", "measurement", "value"]


@dataclass(frozen=True)
class ColumnPath:
    device: str
    measurement: str
    position: int

    @property
    def path(self) -> str:
        if not self.device:
            return self.measurement
        return f"{self.device}{PATH_SEPARATOR}{self.measurement}"


@dataclass
class RecordBatch:
    """
    Four aligned lists, one element per (data row x device) entry.

    This is the shape the record store consumes in a single
    ``insert_records`` call.
    """

    devices: List[str] = field(default_factory=list)
    timestamps: List[int] = field(default_factory=list)
    measurements_list: List[List[str]] = field(default_factory=list)
    values_list: List[List[Optional[str]]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.devices)

    def append(
        self,
        device: str,
        timestamp: int,
        measurements: Sequence[str],
        values: Sequence[Optional[str]],
    ) -> None:
        if len(measurements) != len(values):
            raise ValueError(
                f"Entry for {device} has {len(measurements)} measurements but {len(values)} values."
            )
        self.devices.append(device)
        self.timestamps.append(timestamp)
        self.measurements_list.append(list(measurements))
        self.values_list.append(list(values))

    def to_frame(self) -> pd.DataFrame:
        """
        Long form: one row per (timestamp, device, measurement) point.

        The value column is object dtype so absent values stay ``None``
        instead of being coerced to NaN by string inference.
        """
        timestamps: List[int] = []
        devices: List[str] = []
        names: List[str] = []
        cells: List[Optional[str]] = []
        for device, ts, measurements, values in zip(
            self.devices, self.timestamps, self.measurements_list, self.values_list
        ):
            for m, v in zip(measurements, values):
                timestamps.append(ts)
                devices.append(device)
                names.append(m)
                cells.append(v)

        return pd.DataFrame(
            {
                "timestamp": pd.Series(timestamps, dtype="int64"),
                "device": pd.Series(devices, dtype=object),
                "measurement": pd.Series(names, dtype=object),
                "value": pd.Series(cells, dtype=object),
            },
            columns=FRAME_COLUMNS,
        )
