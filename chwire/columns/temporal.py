"""Date, DateTime and DateTime64 columns."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, BinaryIO

from chwire.columns.base import Column, UnexpectedTypeError, read_exact

__all__ = ["Date", "DateTime", "DateTime64"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECONDS_PER_DAY = 24 * 3600
_NANOS = 10**9

_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_DATETIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?")
_INT_RE = re.compile(r"[+-]?\d+")


def _pack(value: int, bits: int) -> bytes:
    return (value & ((1 << bits) - 1)).to_bytes(bits // 8, "little")


def _read_signed(stream: BinaryIO, size: int) -> int:
    return int.from_bytes(read_exact(stream, size), "little", signed=True)


def _div_trunc(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _is_zero(value: datetime) -> bool:
    offset = value.utcoffset()
    return value.replace(tzinfo=None) == datetime.min and (offset is None or not offset)


def _unix_seconds(value: datetime) -> int:
    """Seconds since the epoch; naive values are taken as local time."""
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.astimezone()
    return calendar.timegm(value.utctimetuple())


def _unix_nanos(value: datetime) -> int:
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.astimezone()
    delta = value - _EPOCH
    return (delta.days * _SECONDS_PER_DAY + delta.seconds) * _NANOS + delta.microseconds * 1000


def _parse_fields(pattern: re.Pattern[str], text: str, layout: str) -> re.Match[str]:
    match = pattern.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as {layout!r}")
    return match


class _TemporalColumn(Column):
    scan_type = datetime

    def __init__(self, name: str, ch_type: str, timezone: tzinfo | None = None) -> None:
        super().__init__(name, ch_type)
        self.timezone = timezone

    @property
    def default_value(self) -> datetime:
        return datetime.min

    def _at(self, moment: datetime) -> datetime:
        return moment.astimezone(self.timezone)


class Date(_TemporalColumn):
    """Days since the epoch, as a signed 16-bit number.

    ``timezone`` of None means the local time zone.
    """

    def __init__(self, name: str, ch_type: str, timezone: tzinfo | None = None) -> None:
        super().__init__(name, ch_type, timezone)
        offset = _EPOCH.astimezone(timezone).utcoffset()
        self.offset = int(offset.total_seconds()) if offset is not None else 0

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        days = _read_signed(stream, 2)
        return self._at(_EPOCH + timedelta(seconds=days * _SECONDS_PER_DAY - self.offset))

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            timestamp = calendar.timegm(value.timetuple())
        elif isinstance(value, date):
            timestamp = (value - _EPOCH.date()).days * _SECONDS_PER_DAY
        elif isinstance(value, int) and not isinstance(value, bool):
            timestamp = value + self.offset
        elif isinstance(value, str):
            year, month, day = _parse_fields(_DATE_RE, value, "2006-01-02").groups()
            parsed = datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
            timestamp = calendar.timegm(parsed.utctimetuple())
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(_pack(_div_trunc(timestamp, _SECONDS_PER_DAY), 16))


class DateTime(_TemporalColumn):
    """Seconds since the epoch, as a signed 32-bit number.

    Text is parsed in the local time zone.
    """

    def __init__(self, name: str, ch_type: str, timezone: tzinfo | None = None) -> None:
        super().__init__(name, ch_type, timezone)

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        return self._at(_EPOCH + timedelta(seconds=_read_signed(stream, 4)))

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            timestamp = 0 if _is_zero(value) else _unix_seconds(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            timestamp = value
        elif isinstance(value, str):
            match = _parse_fields(_DATETIME_RE, value, "2006-01-02 15:04:05")
            parsed = datetime(*(int(part) for part in match.groups()[:6]))
            timestamp = _unix_seconds(parsed)
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(_pack(timestamp, 32))


class DateTime64(_TemporalColumn):
    """Ticks since the epoch at the column's precision, as a signed 64-bit number.

    Text is parsed as UTC. Values read back keep microsecond resolution.
    """

    def __init__(self, name: str, ch_type: str, timezone: tzinfo | None = None) -> None:
        super().__init__(name, ch_type, timezone)

    @property
    def precision(self) -> int:
        """The number of decimal places of a second, taken from the type."""
        head = self.ch_type[11:-1].split(",")[0]
        if not _INT_RE.fullmatch(head):
            raise ValueError(f"invalid DateTime64 precision in {self.ch_type!r}")
        return int(head)

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        value = _read_signed(stream, 8)
        precision = self.precision
        nanos = value * 10 ** (9 - precision) if precision <= 9 else 0
        return self._at(_EPOCH + timedelta(microseconds=nanos // 1000))

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            timestamp = 0 if _is_zero(value) else _unix_nanos(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            timestamp = value
        elif isinstance(value, str):
            match = _parse_fields(_DATETIME_RE, value, "2006-01-02 15:04:05.999")
            parts = match.groups()
            parsed = datetime(*(int(part) for part in parts[:6]), tzinfo=timezone.utc)
            fraction = (parts[6] or "")[:9].ljust(9, "0")
            timestamp = calendar.timegm(parsed.utctimetuple()) * _NANOS + int(fraction)
        else:
            raise UnexpectedTypeError(self, value)

        precision = self.precision
        if precision > 9:
            raise ValueError(f"DateTime64 precision {precision} is not supported for writing")
        stream.write(_pack(_div_trunc(timestamp, 10 ** (9 - precision)), 64))