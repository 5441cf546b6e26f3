"""Enum8 and Enum16 columns: named values stored as 8- or 16-bit integers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, BinaryIO

from chwire.columns.base import Column, UnexpectedTypeError, read_exact

__all__ = ["Enum", "parse_enum"]

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _wrap_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


class Enum(Column):
    """An enumeration mapping names to numbers; ``wide`` selects 16-bit storage."""

    scan_type = str

    def __init__(
        self, name: str, ch_type: str, values: Mapping[str, int], wide: bool = False
    ) -> None:
        super().__init__(name, ch_type)
        if not values:
            raise ValueError(f"invalid Enum format: {ch_type}")
        self.wide = wide
        self.values: dict[str, int] = dict(values)
        self.names: dict[int, str] = {number: ident for ident, number in self.values.items()}
        self._first = next(iter(self.values.values()))

    @property
    def bits(self) -> int:
        return 16 if self.wide else 8

    @property
    def default_value(self) -> int:
        return self._first

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        number = int.from_bytes(read_exact(stream, self.bits // 8), "little", signed=True)
        ident = self.names.get(number)
        if ident is not None:
            return ident
        if is_null:
            return ""
        raise ValueError(f"invalid Enum value: {number}")

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, str):
            if value not in self.values:
                raise ValueError(f"invalid Enum ident: {value}")
            number = self.values[value]
        elif isinstance(value, int) and not isinstance(value, bool):
            number = value
        else:
            raise UnexpectedTypeError(self, value)
        bits = self.bits
        stream.write((number & ((1 << bits) - 1)).to_bytes(bits // 8, "little"))


def parse_enum(name: str, ch_type: str) -> Enum:
    """Build an :class:`Enum` column from a type such as ``Enum8('A'=1, 'B'=2)``."""
    if len(ch_type) < 8:
        raise ValueError(f"invalid Enum format: {ch_type}")
    if ch_type.startswith("Enum8"):
        data, wide = ch_type[6:], False
    elif ch_type.startswith("Enum16"):
        data, wide = ch_type[7:], True
    else:
        raise ValueError(f"'{ch_type}' is not Enum type")

    values: dict[str, int] = {}
    for block in data[:-1].split(","):
        parts = block.split("=")
        if len(parts) != 2:
            raise ValueError(f"invalid Enum format: {ch_type}")
        ident = parts[0].strip()
        text = parts[1].strip()
        if not _INT_RE.fullmatch(text) or not -(1 << 15) <= int(text) < (1 << 15):
            raise ValueError(f"invalid Enum value: {ch_type}")
        if len(ident) < 2:
            raise ValueError(f"invalid Enum format: {ch_type}")
        number = int(text)
        if not wide:
            number = _wrap_signed(number, 8)
        values[ident[1:-1]] = number
    return Enum(name, ch_type, values, wide)