"""Fixed-width integer and floating-point columns."""

from __future__ import annotations

import math
import struct
from typing import Any, BinaryIO

from chwire.columns.base import Column, UnexpectedTypeError, read_exact

__all__ = [
    "FloatColumn",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "IntColumn",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
]


class IntColumn(Column):
    """A little-endian integer column; integers wider than the column wrap around."""

    scan_type = int
    bits = 64
    signed = True
    accepts_bool = False
    accepts_raw = False

    @property
    def size(self) -> int:
        return self.bits // 8

    def read(self, stream: BinaryIO, is_null: bool = False) -> int:
        return int.from_bytes(read_exact(stream, self.size), "little", signed=self.signed)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, bool):
            if not self.accepts_bool:
                raise UnexpectedTypeError(self, value)
            value = int(value)
        elif isinstance(value, (bytes, bytearray)):
            if not self.accepts_raw:
                raise UnexpectedTypeError(self, value)
            stream.write(bytes(value))
            return
        elif not isinstance(value, int):
            raise UnexpectedTypeError(self, value)
        stream.write((value & ((1 << self.bits) - 1)).to_bytes(self.size, "little"))


class Int8(IntColumn):
    bits = 8
    accepts_bool = True


class Int16(IntColumn):
    bits = 16


class Int32(IntColumn):
    bits = 32


class Int64(IntColumn):
    bits = 64
    accepts_raw = True


class UInt8(IntColumn):
    bits = 8
    signed = False
    accepts_bool = True


class UInt16(IntColumn):
    bits = 16
    signed = False


class UInt32(IntColumn):
    bits = 32
    signed = False


class UInt64(IntColumn):
    bits = 64
    signed = False
    accepts_raw = True


class FloatColumn(Column):
    """A little-endian IEEE 754 column; only floats are accepted."""

    scan_type = float
    _struct = struct.Struct("<d")

    def read(self, stream: BinaryIO, is_null: bool = False) -> float:
        return self._struct.unpack(read_exact(stream, self._struct.size))[0]

    def write(self, stream: BinaryIO, value: Any) -> None:
        if not isinstance(value, float):
            raise UnexpectedTypeError(self, value)
        try:
            packed = self._struct.pack(value)
        except OverflowError:
            packed = self._struct.pack(math.copysign(math.inf, value))
        stream.write(packed)


class Float32(FloatColumn):
    _struct = struct.Struct("<f")


class Float64(FloatColumn):
    _struct = struct.Struct("<d")