from __future__ import annotations

from typing import Iterable, List

from sensor_csv_import.data_processing.errors import MalformedLineError

DELIMITER = ","
DOUBLE_QUOTE = '"'
SINGLE_QUOTE = "'"
QUOTE_CHARS = (DOUBLE_QUOTE, SINGLE_QUOTE)
ESCAPE = "\\"


def _find_closing_quote(line: str, quote: str, start: int) -> int:
    """Index of the first quote at or after ``start`` not preceded by a backslash, or -1."""
    end = line.find(quote, start)
    while end != -1 and line[end - 1] == ESCAPE:
        end = line.find(quote, end + 1)
    return end


def _unescape(body: str, quote: str) -> str:
    return body.replace(ESCAPE + quote, quote)


def tokenize(line: str) -> List[str]:
    """
    Split one CSV line into fields.

    A field starting with ``"`` or ``'`` runs to the next quote of the same
    style that is not escaped with a backslash; the wrapping quotes are
    dropped and escaped quotes are unescaped. Quotes anywhere else in a
    field are kept verbatim. A trailing comma yields a trailing empty field.

    Raises MalformedLineError for an unterminated quote or for a closing
    quote followed by anything other than a comma or the end of the line.
    """
    fields: List[str] = []
    if not line:
        return fields

    n = len(line)
    i = 0
    while True:
        if i < n and line[i] in QUOTE_CHARS:
            quote = line[i]
            end = _find_closing_quote(line, quote, i + 1)
            if end == -1:
                raise MalformedLineError(f"Illegal csv line (unterminated quote): {line}")
            after = end + 1
            if after < n and line[after] != DELIMITER:
                raise MalformedLineError(f"Illegal csv line: {line}")
            fields.append(_unescape(line[i + 1 : end], quote))
            if after >= n:
                return fields
            i = after + 1
        else:
            comma = line.find(DELIMITER, i)
            if comma == -1:
                fields.append(line[i:])
                return fields
            fields.append(line[i:comma])
            i = comma + 1


def _needs_quoting(value: str) -> bool:
    return DELIMITER in value or value[:1] in QUOTE_CHARS


def join_fields(fields: Iterable[str]) -> str:
    """Inverse of ``tokenize`` for writing lines back out."""
    out = []
    for value in fields:
        if _needs_quoting(value):
            value = DOUBLE_QUOTE + value.replace(DOUBLE_QUOTE, ESCAPE + DOUBLE_QUOTE) + DOUBLE_QUOTE
        out.append(value)
    return DELIMITER.join(out)
