"""String-like columns: String, UUID and the IPv4/IPv6 address columns."""

from __future__ import annotations

import ipaddress
import string
from typing import Any, BinaryIO, Union

from chwire.columns.base import (
    Column,
    UnexpectedTypeError,
    read_exact,
    read_string,
    write_string,
)

__all__ = [
    "IP",
    "IPv4",
    "IPv6",
    "NULL_UUID",
    "UUID",
    "UUID_LEN",
    "InvalidScanError",
    "InvalidUUIDFormatError",
    "String",
    "scan_ip",
    "uuid_to_bytes",
]

UUID_LEN = 16
NULL_UUID = "00000000-0000-0000-0000-000000000000"

_HEX_DIGITS = frozenset(string.hexdigits)
_DASH_POSITIONS = (8, 13, 18, 23)
_V4_IN_V6_PREFIX = bytes(10) + b"\xff\xff"

_Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class InvalidUUIDFormatError(ValueError):
    """The text is not a UUID in its canonical 8-4-4-4-12 form."""

    def __init__(self, message: str = "invalid UUID format") -> None:
        super().__init__(message)


class InvalidScanError(ValueError):
    """A value could not be turned into an IP address."""


class String(Column):
    """A length-prefixed byte string."""

    scan_type = str

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        return read_string(stream)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if not isinstance(value, (str, bytes, bytearray, memoryview)):
            raise UnexpectedTypeError(self, value)
        write_string(stream, value)


def _swap_halves(raw: bytes) -> bytes:
    """Reverse each 8-byte half, converting between text order and wire order."""
    return raw[7::-1] + raw[:7:-1]


def uuid_to_bytes(text: str) -> bytes:
    """Return the 16 bytes of a UUID in text order; an empty string is the null UUID."""
    if not text:
        text = NULL_UUID
    elif len(text) != 36:
        raise InvalidUUIDFormatError()
    if any(text[position] != "-" for position in _DASH_POSITIONS):
        raise InvalidUUIDFormatError()
    digits = text[0:8] + text[9:13] + text[14:18] + text[19:23] + text[24:36]
    if not all(char in _HEX_DIGITS for char in digits):
        raise InvalidUUIDFormatError()
    return bytes.fromhex(digits)


class UUID(Column):
    """A UUID, stored as two little-endian 64-bit halves."""

    scan_type = str

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        text = _swap_halves(read_exact(stream, UUID_LEN)).hex()
        return f"{text[:8]}-{text[8:12]}-{text[12:16]}-{text[16:20]}-{text[20:]}"

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, str):
            raw = uuid_to_bytes(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            if len(raw) != UUID_LEN:
                raise ValueError(
                    f"invalid raw UUID len (expected {UUID_LEN}, got {len(raw)})"
                )
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(_swap_halves(raw))


def _to16(raw: bytes) -> bytes | None:
    if len(raw) == 4:
        return _V4_IN_V6_PREFIX + raw
    if len(raw) == 16:
        return raw
    return None


def _to4(raw: bytes) -> bytes | None:
    if len(raw) == 4:
        return raw
    if len(raw) == 16 and raw[:12] == _V4_IN_V6_PREFIX:
        return raw[12:]
    return None


def _parse_ip(text: str) -> bytes | None:
    """Parse an address into its 16-byte form, or return None if it is not one."""
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return None
    return _to16(address.packed)


class IP:
    """An IP address held as raw bytes: 4 for IPv4, 16 for IPv6."""

    __slots__ = ("packed",)

    def __init__(self, packed: bytes = b"") -> None:
        self.packed = bytes(packed)

    def marshal_binary(self) -> bytes:
        """Return the address right-aligned in 16 bytes; IPv4 gets the ::ffff: prefix."""
        size = len(self.packed)
        if size >= 16:
            return self.packed
        buffer = bytearray(16 - size) + self.packed
        if size == 4:
            buffer[10] = buffer[11] = 0xFF
        return bytes(buffer)

    def __bytes__(self) -> bytes:
        return self.packed

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IP):
            return NotImplemented
        if len(self.packed) == len(other.packed):
            return self.packed == other.packed
        mine, theirs = _to16(self.packed), _to16(other.packed)
        return mine is not None and mine == theirs

    def __hash__(self) -> int:
        return hash(_to16(self.packed) or self.packed)

    def __str__(self) -> str:
        if not self.packed:
            return "<nil>"
        four = _to4(self.packed)
        if four is not None:
            return str(ipaddress.IPv4Address(four))
        if len(self.packed) == 16:
            return str(ipaddress.IPv6Address(self.packed))
        return "?" + self.packed.hex()

    def __repr__(self) -> str:
        return f"IP({self.packed!r})"


def scan_ip(value: Any) -> IP:
    """Build an :class:`IP` from raw bytes, text or an address object.

    Text that does not parse as an address gives an empty address.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) not in (4, 16):
            raise InvalidScanError("Invalid scan value")
        return IP(raw)
    if isinstance(value, str):
        if not value:
            raise InvalidScanError("Invalid scan value")
        raw = value.encode("utf-8", errors="surrogateescape")
        if len(raw) in (4, 16) and "." not in value and ":" not in value:
            return IP(raw)
        parsed = _parse_ip(value)
        if ":" in value:
            return IP(parsed or b"")
        return IP((_to4(parsed) if parsed is not None else None) or b"")
    if isinstance(value, IP):
        return IP(value.packed)
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return IP(value.packed)
    raise InvalidScanError("Invalid scan types")


def _address_bytes(column: Column, value: Any) -> bytes:
    if isinstance(value, str):
        raw = _parse_ip(value)
    elif isinstance(value, IP):
        raw = value.packed
    elif isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        raw = value.packed
    else:
        raise UnexpectedTypeError(column, value)
    if not raw:
        raise UnexpectedTypeError(column, value)
    return raw


class IPv4(Column):
    """An IPv4 address, stored as a little-endian 32-bit number."""

    scan_type = ipaddress.IPv4Address

    @property
    def default_value(self) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(0)

    def read(self, stream: BinaryIO, is_null: bool = False) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(read_exact(stream, 4)[::-1])

    def write(self, stream: BinaryIO, value: Any) -> None:
        four = _to4(_address_bytes(self, value))
        if four is None:
            raise UnexpectedTypeError(self, value)
        stream.write(four[::-1])


class IPv6(Column):
    """An IPv6 address, stored as 16 bytes in network order."""

    scan_type = ipaddress.IPv6Address

    @property
    def default_value(self) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(0)

    def read(self, stream: BinaryIO, is_null: bool = False) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(read_exact(stream, 16))

    def write(self, stream: BinaryIO, value: Any) -> None:
        sixteen = _to16(_address_bytes(self, value))
        if sixteen is None:
            raise UnexpectedTypeError(self, value)
        stream.write(sixteen)