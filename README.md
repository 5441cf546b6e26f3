# chwire

Pure-Python building blocks for the ClickHouse native protocol, with no
dependencies outside the standard library:

- `chwire.columns` — encoders and decoders for ClickHouse column types:
  `Int8` … `Int64`, `UInt8` … `UInt64`, `Float32`, `Float64`, `String`,
  `UUID`, `IPv4`, `IPv6`, `Date`, `DateTime`, `DateTime64`, `Decimal(P, S)`,
  `Enum8`/`Enum16`, `Nullable`, `Array`, `Tuple` and
  `SimpleAggregateFunction` (which resolves to its wrapped type).
- `chwire.lz4` — LZ4 raw block compression and decompression.
- `chwire.cityhash` — CityHash 1.0.2, 64- and 128-bit.
- `chwire.protocol` — packet codes (`ClientPacket`, `ServerPacket`),
  `Compression` and protocol revision constants.

## Installation

```
pip install chwire
```

## Columns

`chwire.columns.composite.factory(name, ch_type, timezone)` builds the
column for a server type name. Every column has `name`, `ch_type`,
`read(stream, is_null)` and `write(stream, value)` and works with any binary
stream. A `timezone` of `None` means the local time zone.

```python
import io
from datetime import timezone
from chwire.columns.composite import factory

column = factory("n", "Int32", timezone.utc)
buf = io.BytesIO()
column.write(buf, 42)
buf.seek(0)
assert column.read(buf, False) == 42
```

Nullable columns keep null flags apart from values: `write_null(nulls,
stream, value)` writes the flag to `nulls` and the value (or the inner
column's default for `None`) to `stream`; `read_null(stream, rows)` reads
`rows` flags followed by `rows` values and gives `None` for nulls.

```python
nullable = factory("n", "Nullable(Int32)")
nulls, values = io.BytesIO(), io.BytesIO()
nullable.write_null(nulls, values, None)
nullable.write_null(nulls, values, 7)
wire = io.BytesIO(nulls.getvalue() + values.getvalue())
assert nullable.read_null(wire, 2) == [None, 7]
```

Arrays are read a block at a time: `Array.read_array(stream, rows)` reads the
64-bit offsets of each nesting level, then all elements, and returns nested
lists. `Tuple.read_tuple(stream, rows)` returns one list of fields per row.

```python
import struct

array = factory("a", "Array(UInt8)")
wire = io.BytesIO(struct.pack("<2Q", 2, 3) + bytes([1, 2, 3]))
assert array.read_array(wire, 2) == [[1, 2], [3]]
```

Some details worth knowing:

- Integers wider than an integer column wrap around; float columns accept
  only `float`.
- `Decimal` columns store values scaled by `10 ** scale`; floats are scaled
  and truncated. Precision above 18 is read back as 16 raw little-endian bytes.
- `DateTime` parses text in the local time zone, `DateTime64` parses text as
  UTC, and `DateTime64` values read back keep microsecond resolution.
- `chwire.columns.text` also offers `uuid_to_bytes`, the `IP` value type and
  `scan_ip` for turning bytes, text or address objects into an `IP`.

A value a column cannot encode raises
`chwire.columns.base.UnexpectedTypeError`; malformed type names and bad
values raise `ValueError`. The wire primitives `read_uvarint`,
`write_uvarint`, `read_string`, `write_string` and `read_exact` live in
`chwire.columns.base`.

## LZ4

```python
from chwire import lz4

data = b"hello hello hello hello hello"
packed = lz4.encode(data)
assert lz4.decode(packed, len(data)) == data
```

Only raw blocks are handled; the decoded size must be known in advance.
`decode` raises `lz4.CorruptInputError` on damaged input, and `encode`
raises `lz4.InputTooLargeError` for inputs of `lz4.MAX_INPUT_SIZE` bytes or
more. `compress_bound(size)` gives the largest possible compressed size.

## CityHash

```python
from chwire.cityhash import City64, city_hash128, city_hash64

h = city_hash128(b"some bytes")
print(hex(h.lower), hex(h.higher), h.to_bytes())

hasher = City64()
hasher.update(b"some ")
hasher.update(b"bytes")
assert hasher.intdigest() == city_hash64(b"some bytes")
```

Seeded variants are `city_hash64_with_seed`, `city_hash64_with_seeds` and
`city_hash128_with_seed`.

## What this package does not do

It is a codec library, not a client. It opens no connections, sends no
queries, and has no code for the handshake, for reading or writing whole data
blocks with their headers, or for assembling compressed frames with their
checksums. Writing arrays is limited to single elements through
`Array.write`/`Array.write_null`; producing the offsets of a whole array
column is left to the caller.

## Running the tests

```
pip install -e ".[test]"
pytest
```