from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from hypothesis import given
from hypothesis import strategies as st

from chwire.columns.base import UnexpectedTypeError
from chwire.columns.temporal import Date, DateTime, DateTime64

UTC = timezone.utc
PLUS3 = timezone(timedelta(hours=3))


def roundtrip(column, value):
    buffer = BytesIO()
    column.write(buffer, value)
    buffer.seek(0)
    result = column.read(buffer, False)
    assert buffer.read() == b""
    return result


def written(column, value):
    buffer = BytesIO()
    column.write(buffer, value)
    return buffer.getvalue()


@pytest.mark.parametrize("tz", [UTC, PLUS3, timezone(timedelta(hours=-5))])
def test_date_round_trip_over_a_day(tz):
    column = Date("column_name", "Date", tz)
    today = datetime(2021, 6, 15, tzinfo=tz)
    for hour in range(24):
        moment = today + timedelta(hours=hour)
        assert roundtrip(column, moment) == today
        assert roundtrip(column, int(moment.timestamp())) == today
        assert roundtrip(column, moment.strftime("%Y-%m-%d")) == today


def test_date_wire_format():
    column = Date("d", "Date", UTC)
    assert written(column, "1970-01-02") == b"\x01\x00"
    buffer = BytesIO(b"\x01\x00")
    assert column.read(buffer, False) == datetime(1970, 1, 2, tzinfo=UTC)


def test_date_accepts_plain_date():
    column = Date("d", "Date", PLUS3)
    assert roundtrip(column, datetime(2020, 2, 29).date()) == datetime(2020, 2, 29, tzinfo=PLUS3)


def test_date_rejects_malformed_text():
    with pytest.raises(ValueError):
        Date("d", "Date", UTC).write(BytesIO(), "2020-1-2")


@pytest.mark.parametrize("value", [1.5, True, None])
def test_date_rejects_other_types(value):
    column = Date("column_name", "Date", UTC)
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(BytesIO(), value)
    assert info.value.value is value
    assert column.name == "column_name"


def test_datetime_round_trip_aware():
    column = DateTime("column_name", "DateTime", PLUS3)
    moment = datetime(2021, 6, 15, 12, 34, 56, tzinfo=UTC)
    result = roundtrip(column, moment)
    assert result == moment
    assert result.utcoffset() == timedelta(hours=3)


def test_datetime_round_trip_local_time_zone():
    column = DateTime("column_name", "DateTime", None)
    now = datetime.now().astimezone().replace(microsecond=0)
    assert roundtrip(column, now) == now


def test_datetime_text_is_local_time():
    column = DateTime("column_name", "DateTime", UTC)
    expected = datetime(2021, 6, 15, 12, 34, 56).astimezone()
    assert roundtrip(column, "2021-06-15 12:34:56") == expected


def test_datetime_wire_format():
    column = DateTime("dt", "DateTime", UTC)
    assert written(column, 1) == b"\x01\x00\x00\x00"
    assert written(column, datetime.min) == b"\x00\x00\x00\x00"
    assert roundtrip(column, 86400) == datetime(1970, 1, 2, tzinfo=UTC)


@pytest.mark.parametrize("value", [1.0, "not a time", b"x"])
def test_datetime_rejects_bad_values(value):
    column = DateTime("column_name", "DateTime", UTC)
    with pytest.raises((UnexpectedTypeError, ValueError)) as info:
        column.write(BytesIO(), value)
    if isinstance(value, str):
        assert info.type is ValueError
    else:
        assert info.value.value == value


@given(
    st.datetimes(
        min_value=datetime(1902, 1, 1),
        max_value=datetime(2038, 1, 1),
        timezones=st.just(UTC),
    ).map(lambda moment: moment.replace(microsecond=0))
)
def test_datetime_round_trip_property(moment):
    assert roundtrip(DateTime("dt", "DateTime", UTC), moment) == moment


def test_datetime64_round_trip_microseconds():
    column = DateTime64("column_name", "DateTime64(6)", UTC)
    moment = datetime(2021, 6, 15, 12, 34, 56, 123456, tzinfo=UTC)
    assert roundtrip(column, moment) == moment
    assert roundtrip(column, "2021-06-15 12:34:56.123456") == moment
    assert column.ch_type == "DateTime64(6)"


def test_datetime64_truncates_to_precision():
    column = DateTime64("column_name", "DateTime64(3)", UTC)
    moment = datetime(2021, 6, 15, 12, 34, 56, 123456, tzinfo=UTC)
    assert roundtrip(column, moment) == moment.replace(microsecond=123000)


def test_datetime64_wire_format():
    column = DateTime64("dt", "DateTime64(3)", UTC)
    assert written(column, 1_500_000_000) == (1500).to_bytes(8, "little")
    buffer = BytesIO((1500).to_bytes(8, "little"))
    assert column.read(buffer, False) == datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)


def test_datetime64_precision_with_timezone_parameter():
    column = DateTime64("dt", "DateTime64(3, 'UTC')", UTC)
    assert column.precision == 3
    assert written(column, "1970-01-01 00:00:02") == (2000).to_bytes(8, "little")


def test_datetime64_text_without_fraction():
    column = DateTime64("dt", "DateTime64(6)", UTC)
    assert roundtrip(column, "2000-01-01 00:00:00") == datetime(2000, 1, 1, tzinfo=UTC)


def test_datetime64_zero_time_writes_zero():
    assert written(DateTime64("dt", "DateTime64(6)", UTC), datetime.min) == bytes(8)


@pytest.mark.parametrize("value", [1.0, [1], b"x"])
def test_datetime64_rejects_other_types(value):
    column = DateTime64("column_name", "DateTime64(6)", UTC)
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(BytesIO(), value)
    assert info.value.value == value


def test_datetime64_invalid_precision():
    with pytest.raises(ValueError, match="precision"):
        DateTime64("dt", "DateTime64(x)", UTC).write(BytesIO(), 0)


def test_temporal_default_value_is_minimum():
    assert Date("d", "Date", UTC).default_value == datetime.min
    assert DateTime("d", "DateTime", UTC).default_value == datetime.min