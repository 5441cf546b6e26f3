"""LZ4 block compression as used for ClickHouse compressed frames.

Only the raw block format is handled: no frame header, no checksums.
The decoded size must be known in advance, as it is on the wire.
"""

from __future__ import annotations

__all__ = [
    "MAX_INPUT_SIZE",
    "CorruptInputError",
    "InputTooLargeError",
    "compress_bound",
    "decode",
    "encode",
]

_MIN_MATCH = 4
_HASH_LOG = 16
_HASH_TABLE_SIZE = 1 << _HASH_LOG
_HASH_SHIFT = _MIN_MATCH * 8 - _HASH_LOG
_INCOMPRESSIBLE = 128
_ML_BITS = 4
_ML_MASK = (1 << _ML_BITS) - 1
_RUN_MASK = (1 << (8 - _ML_BITS)) - 1
_MASK32 = 0xFFFFFFFF
_MAX_OFFSET = 1 << 16

MAX_INPUT_SIZE = 0x7E000000
"""The largest input that can be compressed as a single block."""

_DECR = (0, 3, 2, 3)


class CorruptInputError(ValueError):
    """The compressed input is malformed or does not fit the expected size."""

    def __init__(self) -> None:
        super().__init__("corrupt input")


class InputTooLargeError(ValueError):
    """The input is too large to be compressed as a single block."""

    def __init__(self) -> None:
        super().__init__("input too large")


def compress_bound(size: int) -> int:
    """Return the largest possible compressed size for ``size`` input bytes."""
    if size > MAX_INPUT_SIZE:
        return 0
    return size + size // 255 + 16


def _write_literals(out: bytearray, src: bytes, length: int, match_len: int, pos: int) -> None:
    code = _RUN_MASK if length > _RUN_MASK - 1 else length
    token_low = _ML_MASK if match_len > _ML_MASK - 1 else match_len
    out.append((code << _ML_BITS) + token_low)
    if code == _RUN_MASK:
        remaining = length - _RUN_MASK
        while remaining > 254:
            out.append(255)
            remaining -= 255
        out.append(remaining)
    out += src[pos : pos + length]


def encode(src: bytes) -> bytes:
    """Compress ``src`` into a single LZ4 block."""
    src = bytes(src)
    n = len(src)
    if n >= MAX_INPUT_SIZE:
        raise InputTooLargeError()

    table = [-1] * _HASH_TABLE_SIZE
    out = bytearray()
    pos = 0
    anchor = 0
    step = 1
    limit = _INCOMPRESSIBLE

    while True:
        if pos + 12 >= n:
            _write_literals(out, src, n - anchor, 0, anchor)
            return bytes(out)

        sequence = src[pos : pos + 4]
        h = ((int.from_bytes(sequence, "little") * 2654435761) & _MASK32) >> _HASH_SHIFT
        ref = table[h]
        table[h] = pos

        if ref < 0 or not 0 <= pos - ref < _MAX_OFFSET or src[ref : ref + 4] != sequence:
            if pos - anchor > limit:
                limit <<= 1
                step += 1 + (step >> 2)
            pos += step
            continue

        if step > 1:
            table[h] = ref
            pos -= step - 1
            step = 1
            continue
        limit = _INCOMPRESSIBLE

        literal_len = pos - anchor
        back = pos - ref
        literal_start = anchor

        pos += _MIN_MATCH
        ref += _MIN_MATCH
        anchor = pos

        while pos < n - 5 and src[pos] == src[ref]:
            pos += 1
            ref += 1

        match_len = pos - anchor

        _write_literals(out, src, literal_len, match_len, literal_start)
        out += back.to_bytes(2, "little")

        if match_len > _ML_MASK - 1:
            match_len -= _ML_MASK
            while match_len > 254:
                match_len -= 255
                out.append(255)
            out.append(match_len)

        anchor = pos


class _Decoder:
    def __init__(self, src: bytes, size: int) -> None:
        self.src = src
        self.dst = bytearray(size)
        self.spos = 0
        self.dpos = 0
        self.ref = 0

    def read_length(self) -> int:
        length = 0
        while True:
            if self.spos >= len(self.src):
                raise CorruptInputError()
            byte = self.src[self.spos]
            self.spos += 1
            length += byte
            if byte != 255:
                return length

    def copy(self, length: int, decr: int) -> None:
        dst, ref, dpos = self.dst, self.ref, self.dpos
        if ref + length < dpos:
            dst[dpos : dpos + length] = dst[ref : ref + length]
        else:
            for offset in range(length):
                dst[dpos + offset] = dst[ref + offset]
        self.dpos += length
        self.ref += length - decr

    def run(self) -> bytes:
        src, size = self.src, len(self.dst)
        n = len(src)
        while True:
            if self.spos == n:
                return bytes(self.dst)
            code = src[self.spos]
            self.spos += 1

            length = code >> _ML_BITS
            if length == _RUN_MASK:
                length += self.read_length()

            if self.spos + length > n or self.dpos + length > size:
                raise CorruptInputError()

            self.dst[self.dpos : self.dpos + length] = src[self.spos : self.spos + length]
            self.spos += length
            self.dpos += length

            if self.spos == n:
                return bytes(self.dst)
            if self.spos + 2 >= n:
                raise CorruptInputError()

            back = src[self.spos] | (src[self.spos + 1] << 8)
            if back > self.dpos:
                raise CorruptInputError()
            self.spos += 2
            self.ref = self.dpos - back

            length = code & _ML_MASK
            if length == _ML_MASK:
                length += self.read_length()

            literal = self.dpos - self.ref
            if literal < 4:
                if self.dpos + 4 > size:
                    raise CorruptInputError()
                self.copy(4, _DECR[literal])
            else:
                length += 4

            if self.dpos + length > size:
                raise CorruptInputError()
            self.copy(length, 0)


def decode(src: bytes, size: int) -> bytes:
    """Decompress one LZ4 block into a buffer of exactly ``size`` bytes."""
    return _Decoder(bytes(src), size).run()