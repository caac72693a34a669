from __future__ import annotations

from sensor_csv_import.data_processing.errors import IllegalPathError
from sensor_csv_import.data_processing.schemas import PATH_SEPARATOR, ColumnPath
from sensor_csv_import.data_processing.tokenizer import DOUBLE_QUOTE, ESCAPE

ILLEGAL_PATH_ARGUMENT = "Path parameter is null"


def _last_index(text: str, ch: str, from_index: int) -> int:
    """Last index of ``ch`` at or before ``from_index``, or -1."""
    if from_index < 0:
        return -1
    return text.rfind(ch, 0, from_index + 1)


def _is_escaped(text: str, index: int) -> bool:
    return index > 0 and text[index - 1] == ESCAPE


def _has_unescaped_quote(text: str) -> bool:
    return any(ch == DOUBLE_QUOTE and not _is_escaped(text, i) for i, ch in enumerate(text))


def _illegal(field: str) -> IllegalPathError:
    return IllegalPathError(f"{ILLEGAL_PATH_ARGUMENT}: {field}")


def decompose(field: str, position: int) -> ColumnPath:
    """
    Split a header label like ``root.sg1.s1`` into device ``root.sg1`` and
    measurement ``s1``.

    A trailing double-quoted node (``root.sg1."a.b"``) is kept whole,
    quotes included, as the measurement. Its opening quote must start the
    label or follow a ``.``.
    """
    if not field:
        return ColumnPath("", "", position)

    last = len(field) - 1
    if field[last] == DOUBLE_QUOTE:
        if _is_escaped(field, last):
            raise _illegal(field)
        start = _last_index(field, DOUBLE_QUOTE, last - 1)
        while start != -1 and _is_escaped(field, start):
            start = _last_index(field, DOUBLE_QUOTE, start - 2)
        if start == 0:
            return ColumnPath("", field, position)
        if start > 0 and field[start - 1] == PATH_SEPARATOR:
            return ColumnPath(field[: start - 1], field[start:], position)
        raise _illegal(field)

    if field[last] == PATH_SEPARATOR:
        raise _illegal(field)

    sep = field.rfind(PATH_SEPARATOR)
    if sep < 0:
        device, measurement = "", field
    else:
        device, measurement = field[:sep], field[sep + 1 :]
    # a quoted node has to close at the end of the label
    if _has_unescaped_quote(measurement):
        raise _illegal(field)
    return ColumnPath(device, measurement, position)
