"""Decimal(P, S) columns, stored as scaled 32-, 64- or 128-bit integers."""

from __future__ import annotations

import re
from typing import Any, BinaryIO

from chwire.columns.base import Column, UnexpectedTypeError, read_exact

__all__ = ["Decimal", "parse_decimal"]

_INT_RE = re.compile(r"[+-]?[0-9]+")

_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1
_INT64_MIN, _INT64_MAX = -(1 << 63), (1 << 63) - 1
_INT128_MIN, _UINT128_LIMIT = -(1 << 127), 1 << 128
_RAW128_LEN = 16


def _wrap_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _pack(value: int, bits: int) -> bytes:
    return (value & ((1 << bits) - 1)).to_bytes(bits // 8, "little")


class Decimal(Column):
    """A fixed-point number held as an integer scaled by ``10 ** scale``.

    Precision up to 9 is stored in 32 bits, up to 18 in 64 bits and up to 38
    in 128 bits; 128-bit values are read back as their 16 little-endian bytes.
    Floats are scaled and truncated toward zero.
    """

    def __init__(self, name: str, ch_type: str, precision: int, scale: int) -> None:
        super().__init__(name, ch_type)
        if precision < 1:
            raise ValueError("wrong precision of Decimal type")
        if scale < 0 or scale > precision:
            raise ValueError("wrong scale of Decimal type")
        if precision <= 9:
            self.bits = 32
        elif precision <= 18:
            self.bits = 64
        elif precision <= 38:
            self.bits = 128
        else:
            raise ValueError("precision of Decimal exceeds max bound")
        self.precision = precision
        self.scale = scale

    @property
    def scan_type(self) -> type:  # type: ignore[override]
        return bytes if self.bits == 128 else int

    @property
    def default_value(self) -> int | bytes:
        return bytes(_RAW128_LEN) if self.bits == 128 else 0

    def read(self, stream: BinaryIO, is_null: bool = False) -> int | bytes:
        if self.bits == 128:
            return read_exact(stream, _RAW128_LEN)
        return int.from_bytes(read_exact(stream, self.bits // 8), "little", signed=True)

    def _scaled(self, value: float) -> int:
        return int(value * 10.0**self.scale)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, bool):
            raise UnexpectedTypeError(self, value)
        if self.bits == 32:
            stream.write(self._encode32(value))
        elif self.bits == 64:
            stream.write(self._encode64(value))
        else:
            stream.write(self._encode128(value))

    def _encode32(self, value: Any) -> bytes:
        if isinstance(value, int):
            if not _INT32_MIN <= value <= _INT32_MAX:
                raise OverflowError("overflow when narrowing type conversion to int32")
            return _pack(value, 32)
        if isinstance(value, float):
            return _pack(self._scaled(value), 32)
        raise UnexpectedTypeError(self, value)

    def _encode64(self, value: Any) -> bytes:
        if isinstance(value, int):
            if not _INT64_MIN <= value <= _INT64_MAX:
                raise OverflowError("overflow when narrowing type conversion to int64")
            return _pack(value, 64)
        if isinstance(value, float):
            return _pack(self._scaled(value), 64)
        raise UnexpectedTypeError(self, value)

    def _encode128(self, value: Any) -> bytes:
        if isinstance(value, int):
            if not _INT128_MIN <= value < _UINT128_LIMIT:
                raise OverflowError("value does not fit in 128 bits")
            return _pack(value, 128)
        if isinstance(value, float):
            return _pack(_wrap_signed(self._scaled(value), 64), 128)
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            if len(raw) != _RAW128_LEN:
                raise ValueError("expected 16 bytes")
            return raw
        raise UnexpectedTypeError(self, value)


def _parse_int(text: str, ch_type: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"'{ch_type}' is not Decimal type: invalid syntax {text!r}")
    return int(text)


def parse_decimal(name: str, ch_type: str) -> Decimal:
    """Build a :class:`Decimal` column from a type such as ``Decimal(18, 5)``."""
    if (
        len(ch_type) < 12
        or not ch_type.startswith("Decimal")
        or ch_type[7] != "("
        or ch_type[-1] != ")"
    ):
        raise ValueError(f"invalid Decimal format: '{ch_type}'")
    params = ch_type[8:-1].split(",")
    if len(params) != 2:
        raise ValueError(f"invalid Decimal format: '{ch_type}'")
    precision = _parse_int(params[0].strip(), ch_type)
    scale = _parse_int(params[1].strip(), ch_type)
    return Decimal(name, ch_type, precision, scale)