from __future__ import annotations

import codecs
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Collection, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple, Union

from tqdm import tqdm

from sensor_csv_import.data_processing.batch_builder import DEFAULT_NULL_VALUES, add_row
from sensor_csv_import.data_processing.column_index import build_index
from sensor_csv_import.data_processing.errors import (
    CsvImportError,
    ErrorKind,
    FileReadError,
    HeaderFormatError,
    TransportError,
)
from sensor_csv_import.data_processing.schemas import ColumnIndex, RecordBatch
from sensor_csv_import.data_processing.tokenizer import tokenize
from sensor_csv_import.utils.files import count_lines

log = logging.getLogger(__name__)

FILE_SUFFIX = ".csv"

STATUS_IMPORTED = "imported"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


class RecordStore(Protocol):
    def insert_records(
        self,
        devices: Sequence[str],
        timestamps: Sequence[int],
        measurements_list: Sequence[Sequence[str]],
        values_list: Sequence[Sequence[Optional[str]]],
    ) -> int: ...


def _null_values(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return DEFAULT_NULL_VALUES
    # a bare YAML scalar means one token, not its characters
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"import.null_values must be a list of strings, got {raw!r}")
    return tuple("" if v is None else str(v) for v in raw)


@contextmanager
def _stage(path: Path, section: str, timings: Dict[str, float]) -> Iterator[None]:
    """Record how long one stage of a file's import took in ``timings``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        timings[section] = time.perf_counter() - start
        log.debug("%s: %s took %.3fs", path.name, section, timings[section])


@dataclass
class ImportSession:
    """Everything one import run shares across files, passed explicitly to each call."""

    store: RecordStore
    time_zone: Optional[str] = None
    null_values: Tuple[str, ...] = DEFAULT_NULL_VALUES
    suffix: str = FILE_SUFFIX
    encoding: str = "utf-8-sig"
    show_progress: bool = True

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], store: RecordStore) -> "ImportSession":
        """Raises ValueError for settings that would make every file fail."""
        imp = cfg.get("import", {}) or {}
        encoding = str(imp.get("encoding", "utf-8-sig"))
        try:
            codecs.lookup(encoding)
        except LookupError:
            raise ValueError(f"Unknown import.encoding {encoding!r}") from None
        return cls(
            store=store,
            time_zone=(cfg.get("store", {}) or {}).get("time_zone"),
            null_values=_null_values(imp.get("null_values")),
            suffix=str(imp.get("suffix", FILE_SUFFIX)),
            encoding=encoding,
            show_progress=bool(imp.get("progress", True)),
        )


@dataclass
class ParseOutcome:
    batch: Optional[RecordBatch] = None
    error: Optional[CsvImportError] = None
    rows: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FileResult:
    path: Path
    status: str
    rows: int = 0
    entries: int = 0
    points: int = 0
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    timings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "status": self.status,
            "rows": self.rows,
            "entries": self.entries,
            "points": self.points,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
            "timings_sec": self.timings,
        }


def _read_header(lines: Iterator[Tuple[int, str]]) -> ColumnIndex:
    try:
        line_no, header = next(lines)
    except StopIteration:
        raise HeaderFormatError("The CSV file is empty, please check first line", line_no=1) from None
    try:
        cols = tokenize(header)
        if len(cols) <= 1:
            raise HeaderFormatError(f"The CSV header is illegal, please check first line: {header}")
        return build_index(cols)
    except CsvImportError as e:
        e.line_no = line_no
        raise


def parse_csv_lines(
    lines: Iterable[str],
    null_values: Collection[str] = DEFAULT_NULL_VALUES,
) -> Tuple[RecordBatch, int]:
    """
    Build the batch for one file's lines (header first).

    Returns the batch and the number of data rows read. Raises a
    CsvImportError subclass, with ``line_no`` set, on the first bad line.
    Blank data lines are skipped.
    """
    numbered = ((no, line.rstrip("\r\n")) for no, line in enumerate(lines, start=1))
    index = _read_header(numbered)

    batch = RecordBatch()
    rows = 0
    for line_no, line in numbered:
        if not line.strip():
            log.debug("Skipping blank line %d", line_no)
            continue
        try:
            cols = tokenize(line)
            add_row(cols, index, batch, null_values=null_values)
        except CsvImportError as e:
            e.line_no = line_no
            raise
        rows += 1
    return batch, rows


def _with_progress(lines: Iterable[str], pbar: tqdm) -> Iterator[str]:
    for line in lines:
        pbar.update(1)
        yield line


def parse_csv_file(path: Union[str, Path], session: ImportSession) -> ParseOutcome:
    """Parse one file into a batch; failures come back in the outcome instead of being raised."""
    path = Path(path)
    try:
        total = count_lines(path)
        with path.open("r", encoding=session.encoding, errors="ignore") as f, tqdm(
            total=total,
            desc=f"Import from: {path.name}",
            unit="line",
            disable=not session.show_progress,
        ) as pbar:
            batch, rows = parse_csv_lines(_with_progress(f, pbar), null_values=session.null_values)
    except CsvImportError as e:
        return ParseOutcome(error=e)
    except (OSError, LookupError) as e:
        return ParseOutcome(error=FileReadError(f"Cannot read {path.name} because: {e}"))
    return ParseOutcome(batch=batch, rows=rows)


def import_file(path: Union[str, Path], session: ImportSession) -> FileResult:
    path = Path(path)
    if path.suffix.lower() != session.suffix.lower():
        log.warning("File %s should end with '%s' if you want to import it", path.name, session.suffix)
        return FileResult(path, STATUS_SKIPPED, message=f"not a {session.suffix} file")

    log.info("Start to import data from: %s", path.name)
    timings: Dict[str, float] = {}
    with _stage(path, "parse", timings):
        outcome = parse_csv_file(path, session)
    if not outcome.ok:
        err = outcome.error
        log.warning("Failed to import %s (%s): %s", path.name, err.kind.value, err)
        return FileResult(path, STATUS_FAILED, error_kind=err.kind, message=str(err), timings=timings)

    batch = outcome.batch
    try:
        with _stage(path, "insert", timings):
            points = session.store.insert_records(
                batch.devices, batch.timestamps, batch.measurements_list, batch.values_list
            )
    except TransportError as e:
        log.error("Meet error when inserting %s because: %s", path.name, e)
        return FileResult(
            path,
            STATUS_FAILED,
            rows=outcome.rows,
            entries=len(batch),
            error_kind=e.kind,
            message=str(e),
            timings=timings,
        )

    log.info("Imported %s: %d rows, %d entries, %d points", path.name, outcome.rows, len(batch), points)
    return FileResult(
        path,
        STATUS_IMPORTED,
        rows=outcome.rows,
        entries=len(batch),
        points=points,
        timings=timings,
    )


def import_directory(path: Union[str, Path], session: ImportSession) -> List[FileResult]:
    """Import the files directly inside ``path`` one at a time, in name order."""
    path = Path(path)
    try:
        children = sorted(p for p in path.iterdir() if p.is_file())
    except OSError as e:
        log.error("Cannot list %s because: %s", path, e)
        return [FileResult(path, STATUS_FAILED, error_kind=ErrorKind.IO, message=str(e))]

    return [import_file(child, session) for child in children]


def import_path(path: Union[str, Path], session: ImportSession) -> List[FileResult]:
    path = Path(path)
    if path.is_file():
        return [import_file(path, session)]
    if path.is_dir():
        return import_directory(path, session)
    log.error("Cannot find %s", path)
    return [FileResult(path, STATUS_FAILED, error_kind=ErrorKind.IO, message=f"Cannot find {path}")]


def summarize(results: Sequence[FileResult]) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "files": len(results),
        STATUS_IMPORTED: 0,
        STATUS_SKIPPED: 0,
        STATUS_FAILED: 0,
        "rows": 0,
        "entries": 0,
        "points": 0,
    }
    for r in results:
        summary[r.status] += 1
        if r.status == STATUS_IMPORTED:
            summary["rows"] += r.rows
            summary["entries"] += r.entries
            summary["points"] += r.points
    summary["details"] = [r.to_dict() for r in results]
    return summary
