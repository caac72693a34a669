from __future__ import annotations

import pytest

from sensor_csv_import.data_processing.column_paths import decompose
from sensor_csv_import.data_processing.errors import ErrorKind, IllegalPathError
from sensor_csv_import.data_processing.schemas import ColumnPath


@pytest.mark.parametrize(
    "field, device, measurement",
    [
        ("root.sg1.temperature", "root.sg1", "temperature"),
        ('root.sg1."temperature"', "root.sg1", '"temperature"'),
        ('root.sg1."a.b"', "root.sg1", '"a.b"'),
        ('root.sg1."a\\"b"', "root.sg1", '"a\\"b"'),
        ('"whole"', "", '"whole"'),
        ("s1", "", "s1"),
        ("", "", ""),
        ('root."sg.1".s1', 'root."sg.1"', "s1"),
        ("root.sg1.a\\\"b", "root.sg1", 'a\\"b'),
    ],
)
def test_decompose(field, device, measurement):
    assert decompose(field, 3) == ColumnPath(device, measurement, 3)


@pytest.mark.parametrize(
    "field",
    [
        'x"y"z',
        'x"y"',
        "root.sg1.",
        '"',
        'root.sg1.\\"',
        'root."a.b"c',
    ],
)
def test_decompose_rejects_illegal_paths(field):
    with pytest.raises(IllegalPathError) as exc:
        decompose(field, 1)
    assert exc.value.kind is ErrorKind.ILLEGAL_PATH
    assert str(exc.value).startswith("Path parameter is null")
    assert field in str(exc.value)


def test_position_is_carried_through():
    assert decompose("root.d.s", 7).position == 7


@pytest.mark.parametrize("field", ["root.sg1.s1", 'root.sg1."s.1"', "s1", 'root."x".y'])
def test_path_reassembles_original_label(field):
    assert decompose(field, 1).path == field
