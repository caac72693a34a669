from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MALFORMED_LINE = "malformed_line"
    ILLEGAL_PATH = "illegal_path"
    ROW_FORMAT = "row_format"
    MALFORMED_HEADER = "malformed_header"
    IO = "io"
    TRANSPORT = "transport"


class CsvImportError(Exception):
    """
    Base class for everything that makes a single file's import fail.

    Every subclass carries a tagged ``kind`` so the per-file driver can
    report and skip without inspecting exception types. ``line_no`` is
    1-based and filled in by the driver once the failing line is known.
    """

    kind: ErrorKind = ErrorKind.MALFORMED_LINE

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no

    def __str__(self) -> str:
        if self.line_no is None:
            return self.message
        return f"line {self.line_no}: {self.message}"


class MalformedLineError(CsvImportError, ValueError):
    kind = ErrorKind.MALFORMED_LINE


class IllegalPathError(CsvImportError, ValueError):
    kind = ErrorKind.ILLEGAL_PATH


class RowFormatError(CsvImportError, ValueError):
    kind = ErrorKind.ROW_FORMAT


class HeaderFormatError(CsvImportError, ValueError):
    kind = ErrorKind.MALFORMED_HEADER


class FileReadError(CsvImportError):
    kind = ErrorKind.IO


class TransportError(CsvImportError):
    """Raised by the record store when a connection or statement fails."""

    kind = ErrorKind.TRANSPORT
