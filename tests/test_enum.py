import io

import pytest

from chwire.columns.base import UnexpectedTypeError
from chwire.columns.enum import Enum, parse_enum


def _round_trip(column, value, is_null=False):
    buffer = io.BytesIO()
    column.write(buffer, value)
    buffer.seek(0)
    return column.read(buffer, is_null)


@pytest.mark.parametrize(
    "ch_type", ["Enum8('A'=1,'B'=2,'C'=3)", "Enum16('A'=1,'B'=2,'C'=3)"]
)
def test_write_and_read(ch_type):
    column = parse_enum("column_name", ch_type)
    assert _round_trip(column, "B") == "B"
    assert _round_trip(column, 3) == "C"
    assert column.name == "column_name"
    assert column.ch_type == ch_type
    assert column.scan_type is str


def test_wire_widths():
    enum8 = parse_enum("c", "Enum8('A'=1, 'B'=2, 'C'=3)")
    enum16 = parse_enum("c", "Enum16('A'=1,'B'=2,'C'=3)")
    for column, expected in ((enum8, b"\x01"), (enum16, b"\x01\x00")):
        buffer = io.BytesIO()
        column.write(buffer, "A")
        assert buffer.getvalue() == expected


def test_parsed_mapping():
    column = parse_enum("c", "Enum16('x' = -5, 'y' = 1000)")
    assert column.values == {"x": -5, "y": 1000}
    assert column.names == {-5: "x", 1000: "y"}
    assert column.wide is True
    assert column.default_value == -5


def test_enum8_values_wrap_to_eight_bits():
    column = parse_enum("c", "Enum8('big'=200)")
    assert column.values == {"big": -56}
    assert _round_trip(column, "big") == "big"


@pytest.mark.parametrize("value", [True, 1.0, None, b"A"])
def test_unexpected_type(value):
    column = parse_enum("c", "Enum8('A'=1,'B'=2,'C'=3)")
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(io.BytesIO(), value)
    assert info.value.value == value


def test_unknown_ident():
    column = parse_enum("c", "Enum8('A'=1)")
    with pytest.raises(ValueError, match="invalid Enum ident: Z"):
        column.write(io.BytesIO(), "Z")


def test_unknown_value_on_read():
    column = parse_enum("c", "Enum8('A'=1,'B'=2,'C'=3)")
    with pytest.raises(ValueError, match="invalid Enum value: 0"):
        column.read(io.BytesIO(b"\x00"), False)


def test_null_with_zero_value_reads_as_empty():
    column = parse_enum("c", "Enum8('A'=1,'B'=2,'C'=3)")
    assert column.read(io.BytesIO(b"\x00"), True) == ""


def test_null_with_known_value_keeps_name():
    column = parse_enum("c", "Enum16('A'=1,'B'=2)")
    assert column.read(io.BytesIO(b"\x02\x00"), True) == "B"


@pytest.mark.parametrize(
    "ch_type, message",
    [
        ("Enum8", "invalid Enum format"),
        ("Enum32('A'=1)", "is not Enum type"),
        ("Enum8('A'1)", "invalid Enum format"),
        ("Enum8('A'=1=2)", "invalid Enum format"),
        ("Enum16('A'=40000)", "invalid Enum value"),
        ("Enum8('A'=x)", "invalid Enum value"),
    ],
)
def test_parse_errors(ch_type, message):
    with pytest.raises(ValueError, match=message):
        parse_enum("c", ch_type)


def test_empty_values_rejected():
    with pytest.raises(ValueError):
        Enum("c", "Enum8()", {}, False)


def test_direct_construction_round_trip():
    column = Enum("c", "Enum16('on'=1,'off'=2)", {"on": 1, "off": 2}, wide=True)
    assert _round_trip(column, "off") == "off"
    assert column.bits == 16
    assert column.default_value == 1
    assert str(column) == "c (Enum16('on'=1,'off'=2))"