"""Shared pieces of every column codec: the base class, errors and wire primitives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO

__all__ = [
    "Column",
    "UnexpectedTypeError",
    "read_exact",
    "read_string",
    "read_uvarint",
    "write_string",
    "write_uvarint",
]

_MAX_VARINT_LEN = 10
_UINT64_LIMIT = 1 << 64


class UnexpectedTypeError(TypeError):
    """A value of a type the column cannot encode was given to it."""

    def __init__(self, column: Column, value: Any) -> None:
        self.column = column
        self.value = value
        super().__init__(f"{column}: unexpected type {type(value).__name__}")


class Column(ABC):
    """A typed column: knows its name, its server type and how to code one value."""

    scan_type: type = object

    def __init__(self, name: str, ch_type: str) -> None:
        self.name = name
        self.ch_type = ch_type

    @property
    def depth(self) -> int:
        """Nesting depth of arrays; plain columns have none."""
        return 0

    @property
    def default_value(self) -> Any:
        """The value written in place of a null."""
        return self.scan_type()

    @abstractmethod
    def read(self, stream: BinaryIO, is_null: bool) -> Any:
        """Decode one value from ``stream``."""

    @abstractmethod
    def write(self, stream: BinaryIO, value: Any) -> None:
        """Encode ``value`` onto ``stream``."""

    def __str__(self) -> str:
        return f"{self.name} ({self.ch_type})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, ch_type={self.ch_type!r})"


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes or raise :class:`EOFError`."""
    if size < 0:
        raise ValueError(f"negative read size: {size}")
    data = stream.read(size)
    if data is None or len(data) < size:
        got = 0 if data is None else len(data)
        raise EOFError(f"expected {size} bytes, got {got}")
    return bytes(data)


def read_uvarint(stream: BinaryIO) -> int:
    """Read an unsigned LEB128 integer of at most 64 bits."""
    result = 0
    shift = 0
    for index in range(_MAX_VARINT_LEN):
        byte = read_exact(stream, 1)[0]
        if byte < 0x80:
            if index == _MAX_VARINT_LEN - 1 and byte > 1:
                break
            return result | (byte << shift)
        result |= (byte & 0x7F) << shift
        shift += 7
    raise OverflowError("varint overflows a 64-bit integer")


def write_uvarint(stream: BinaryIO, value: int) -> None:
    """Write ``value`` as an unsigned LEB128 integer."""
    if not 0 <= value < _UINT64_LIMIT:
        raise ValueError(f"value out of range for an unsigned varint: {value}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    stream.write(bytes(out))


def read_string(stream: BinaryIO) -> str:
    """Read a length-prefixed string; bytes that are not UTF-8 survive a round trip."""
    size = read_uvarint(stream)
    return read_exact(stream, size).decode("utf-8", errors="surrogateescape")


def write_string(stream: BinaryIO, data: str | bytes | bytearray | memoryview) -> None:
    """Write ``data`` prefixed by its length in bytes."""
    raw = data.encode("utf-8", errors="surrogateescape") if isinstance(data, str) else bytes(data)
    write_uvarint(stream, len(raw))
    stream.write(raw)