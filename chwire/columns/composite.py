"""Composite columns (Nullable, Array, Tuple) and the factory that builds any column from its type."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from datetime import tzinfo
from typing import Any, BinaryIO

from chwire.columns.base import Column, read_exact
from chwire.columns.decimal import Decimal, parse_decimal
from chwire.columns.enum import parse_enum
from chwire.columns.numeric import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from chwire.columns.temporal import Date, DateTime, DateTime64
from chwire.columns.text import UUID, IPv4, IPv6, String

__all__ = [
    "Array",
    "Nullable",
    "Tuple",
    "factory",
    "nested_type",
    "parse_array",
    "parse_nullable",
    "parse_tuple",
]

_SIMPLE_COLUMNS: dict[str, type[Column]] = {
    "Int8": Int8,
    "Int16": Int16,
    "Int32": Int32,
    "Int64": Int64,
    "UInt8": UInt8,
    "UInt16": UInt16,
    "UInt32": UInt32,
    "UInt64": UInt64,
    "Float32": Float32,
    "Float64": Float64,
    "String": String,
    "UUID": UUID,
    "IPv4": IPv4,
    "IPv6": IPv6,
}


def _read_uint64s(stream: BinaryIO, count: int) -> list[int]:
    return list(struct.unpack(f"<{count}Q", read_exact(stream, 8 * count)))


class Nullable(Column):
    """A column whose values may be null; null flags travel in a separate stream."""

    def __init__(self, name: str, ch_type: str, column: Column) -> None:
        super().__init__(name, ch_type)
        self.column = column

    @property
    def scan_type(self) -> type:  # type: ignore[override]
        return self.column.scan_type

    @property
    def default_value(self) -> Any:
        return None

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        return self.column.read(stream, is_null)

    def write(self, stream: BinaryIO, value: Any) -> None:
        """Write the value alone, without its null flag."""
        self.column.write(stream, value)

    def read_null(self, stream: BinaryIO, rows: int) -> list[Any]:
        """Read ``rows`` null flags followed by ``rows`` values; nulls come back as None."""
        flags = read_exact(stream, rows)
        values: list[Any] = []
        for flag in flags:
            value = self.column.read(stream, flag != 0)
            values.append(None if flag else value)
        return values

    def write_null(self, nulls: BinaryIO, stream: BinaryIO, value: Any) -> None:
        """Write the null flag to ``nulls`` and the value (or a default) to ``stream``."""
        if value is None:
            nulls.write(b"\x01")
            self.column.write(stream, self.column.default_value)
            return
        nulls.write(b"\x00")
        self.column.write(stream, value)


class Tuple(Column):
    """A tuple of columns, read column by column and reassembled per row."""

    scan_type = list

    def __init__(self, name: str, ch_type: str, columns: list[Column]) -> None:
        super().__init__(name, ch_type)
        self.columns = list(columns)

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        raise TypeError("do not use read method for Tuple(T) column")

    def write(self, stream: BinaryIO, value: Any) -> None:
        raise TypeError(f"unsupported Tuple(T) type [{type(value).__name__}]")

    def read_tuple(self, stream: BinaryIO, rows: int) -> list[list[Any]]:
        """Read ``rows`` tuples; each comes back as a list of its fields."""
        values: list[list[Any]] = [[] for _ in range(rows)]
        for column in self.columns:
            if isinstance(column, Array):
                fields = column.read_array(stream, rows)
            elif isinstance(column, Nullable):
                fields = column.read_null(stream, rows)
            elif isinstance(column, Tuple):
                fields = column.read_tuple(stream, rows)
            else:
                fields = [column.read(stream, False) for _ in range(rows)]
            for row, field in zip(values, fields):
                row.append(field)
        return values


class Array(Column):
    """An array, possibly nested ``depth`` levels deep, of one element column."""

    scan_type = list

    def __init__(self, name: str, ch_type: str, column: Column, depth: int) -> None:
        super().__init__(name, ch_type)
        self.column = column
        self._depth = depth
        self.nullable = column.ch_type.startswith("Nullable")

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def default_value(self) -> list[Any]:
        return []

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        raise TypeError("do not use read method for Array(T) column")

    def write(self, stream: BinaryIO, value: Any) -> None:
        """Write one element through the element column."""
        self.column.write(stream, value)

    def write_null(self, nulls: BinaryIO, stream: BinaryIO, value: Any) -> None:
        """Write one possibly null element of an Array(Nullable(T))."""
        if not self.nullable:
            raise ValueError("write null to not nullable array")
        if not isinstance(self.column, Nullable):
            raise TypeError("cannot convert to nullable type")
        self.column.write_null(nulls, stream, value)

    def read_array(self, stream: BinaryIO, rows: int) -> list[Any]:
        """Read ``rows`` arrays: the offsets of every level, then all elements."""
        offsets: list[list[int]] = []
        count = rows
        for _ in range(self._depth):
            level = _read_uint64s(stream, count)
            offsets.append(level)
            count = level[-1] if level else 0

        if isinstance(self.column, Nullable):
            elements: list[Any] = self.column.read_null(stream, count)
        elif isinstance(self.column, Tuple):
            elements = self.column.read_tuple(stream, count)
        else:
            elements = [self.column.read(stream, self.nullable) for _ in range(count)]

        items = iter(elements)
        return [self._assemble(items, offsets, index, 0) for index in range(rows)]

    def _assemble(
        self, items: Iterator[Any], offsets: list[list[int]], index: int, level: int
    ) -> list[Any]:
        end = offsets[level][index]
        start = offsets[level][index - 1] if index > 0 else 0
        if level == self._depth - 1:
            return [next(items) for _ in range(start, end)]
        return [self._assemble(items, offsets, i, level + 1) for i in range(start, end)]


def nested_type(ch_type: str, wrap_type: str) -> str:
    """Return the type wrapped as the second argument, as in ``Wrap(func, Type)``."""
    prefix_len = len(wrap_type) + 1
    if len(ch_type) > prefix_len + 1:
        parts = ch_type[prefix_len:-1].split(",")
        if len(parts) == 2:
            return parts[1].strip()
    raise ValueError(f"column: invalid {wrap_type} type ({ch_type})")


def parse_nullable(name: str, ch_type: str, timezone: tzinfo | None = None) -> Nullable:
    """Build a :class:`Nullable` column from a type such as ``Nullable(Int8)``."""
    if len(ch_type) < 14:
        raise ValueError(f"invalid Nullable column type: {ch_type}")
    try:
        column = factory(name, ch_type[9:-1], timezone)
    except ValueError as error:
        raise ValueError(f"Nullable(T): {error}") from error
    return Nullable(name, ch_type, column)


def _array_supported(column: Column) -> bool:
    inner = column.column if isinstance(column, Nullable) else column
    if isinstance(inner, Decimal) and inner.bits == 128:
        return False
    return not (isinstance(column, Nullable) and isinstance(inner, Tuple))


def parse_array(name: str, ch_type: str, timezone: tzinfo | None = None) -> Array:
    """Build an :class:`Array` column from a type such as ``Array(Array(Int8))``."""
    if len(ch_type) < 11:
        raise ValueError(f"invalid Array column type: {ch_type}")
    depth = 0
    element_type = ch_type
    for part in ch_type.split("Array("):
        if not part:
            depth += 1
            continue
        element_type = part[: len(part) - depth]
        break
    try:
        column = factory(name, element_type, timezone)
    except ValueError as error:
        raise ValueError(f"Array(T): {error}") from error
    if not _array_supported(column):
        raise ValueError(f"unsupported Array type '{column.ch_type}'")
    return Array(name, ch_type, column, depth)


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    level = 0
    start = 0
    for index, char in enumerate(text):
        if char == "(":
            level += 1
        elif char == ")":
            level -= 1
        elif char == "," and level == 0:
            parts.append(text[start:index].strip())
            start = index + 1
    parts.append(text[start:].strip())
    return parts


def parse_tuple(name: str, ch_type: str, timezone: tzinfo | None = None) -> Tuple:
    """Build a :class:`Tuple` column from a type such as ``Tuple(Int8, String)``."""
    if len(ch_type) < 8 or not ch_type.startswith("Tuple(") or not ch_type.endswith(")"):
        raise ValueError(f"invalid Tuple column type: {ch_type}")
    columns: list[Column] = []
    for index, element_type in enumerate(_split_top_level(ch_type[6:-1]), start=1):
        try:
            columns.append(factory(f"{name}.{index}", element_type, timezone))
        except ValueError as error:
            raise ValueError(f"{element_type}: {error}") from error
    return Tuple(name, ch_type, columns)


def factory(name: str, ch_type: str, timezone: tzinfo | None = None) -> Column:
    """Build the column for server type ``ch_type``; ``timezone`` None means local time."""
    simple = _SIMPLE_COLUMNS.get(ch_type)
    if simple is not None:
        return simple(name, ch_type)
    if ch_type == "Date":
        return Date(name, ch_type, timezone)
    if ch_type.startswith("DateTime") and not ch_type.startswith("DateTime64"):
        return DateTime(name, "DateTime", timezone)
    if ch_type.startswith("DateTime64"):
        return DateTime64(name, ch_type, timezone)
    if ch_type.startswith("Array"):
        return parse_array(name, ch_type, timezone)
    if ch_type.startswith("Nullable"):
        return parse_nullable(name, ch_type, timezone)
    if ch_type.startswith(("Enum8", "Enum16")):
        return parse_enum(name, ch_type)
    if ch_type.startswith("Decimal"):
        return parse_decimal(name, ch_type)
    if ch_type.startswith("SimpleAggregateFunction"):
        return factory(name, nested_type(ch_type, "SimpleAggregateFunction"), timezone)
    if ch_type.startswith("Tuple"):
        return parse_tuple(name, ch_type, timezone)
    raise ValueError(f"column: unhandled type {ch_type}")