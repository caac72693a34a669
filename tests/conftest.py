from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, List

import pytest

from sensor_csv_import.data_processing.csv_import import ImportSession
from sensor_csv_import.storage.sqlite_store import SqliteStore


@pytest.fixture()
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    def _write(name: str, lines: List[str], directory: Path = tmp_path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        p = directory / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _write


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[SqliteStore]:
    s = SqliteStore(tmp_path / "db" / "records.db")
    s.open()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def session(store: SqliteStore) -> ImportSession:
    return ImportSession(store=store, show_progress=False)
