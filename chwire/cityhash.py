"""CityHash v1.0.2 (64- and 128-bit variants), as used by ClickHouse for block checksums."""

from __future__ import annotations

import struct
from typing import NamedTuple

__all__ = [
    "K0",
    "K1",
    "K2",
    "K3",
    "City64",
    "Uint128",
    "city_hash64",
    "city_hash64_with_seed",
    "city_hash64_with_seeds",
    "city_hash128",
    "city_hash128_with_seed",
]

K0 = 0xC3A5C85C97CB3127
K1 = 0xB492B66FBE98F273
K2 = 0x9AE16A3B2F90404F
K3 = 0xC949D7C7509E6557
_KMUL = 0x9DDFEA08EB382D69

_MASK = (1 << 64) - 1
_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")
_PAIR = struct.Struct("<QQ")


class Uint128(NamedTuple):
    """A 128-bit value held as its lower and higher 64-bit halves."""

    lower: int
    higher: int

    def to_bytes(self) -> bytes:
        """Return the 16-byte little-endian form: lower half first."""
        return _PAIR.pack(self.lower, self.higher)


def _fetch64(s: bytes, offset: int = 0) -> int:
    return _U64.unpack_from(s, offset)[0]


def _fetch32(s: bytes, offset: int = 0) -> int:
    return _U32.unpack_from(s, offset)[0]


def _rotate(value: int, shift: int) -> int:
    value &= _MASK
    if shift == 0:
        return value
    return ((value >> shift) | (value << (64 - shift))) & _MASK


def _shift_mix(value: int) -> int:
    value &= _MASK
    return value ^ (value >> 47)


def _hash_len16(u: int, v: int, mul: int = _KMUL) -> int:
    a = ((u ^ v) * mul) & _MASK
    a ^= a >> 47
    b = ((v ^ a) * mul) & _MASK
    b ^= b >> 47
    return (b * mul) & _MASK


def _hash_len0to16(s: bytes) -> int:
    n = len(s)
    if n > 8:
        a = _fetch64(s)
        b = _fetch64(s, n - 8)
        return _hash_len16(a, _rotate(b + n, n)) ^ b
    if n >= 4:
        a = _fetch32(s)
        return _hash_len16((n + (a << 3)) & _MASK, _fetch32(s, n - 4))
    if n > 0:
        a, b, c = s[0], s[n >> 1], s[n - 1]
        y = a + (b << 8)
        z = (n + (c << 2)) & 0xFFFFFFFF
        return (_shift_mix(((y * K2) ^ (z * K3)) & _MASK) * K2) & _MASK
    return K2


def _hash_len17to32(s: bytes) -> int:
    n = len(s)
    a = (_fetch64(s) * K1) & _MASK
    b = _fetch64(s, 8)
    c = (_fetch64(s, n - 8) * K2) & _MASK
    d = (_fetch64(s, n - 16) * K0) & _MASK
    return _hash_len16(
        (_rotate(a - b, 43) + _rotate(c, 30) + d) & _MASK,
        (a + _rotate(b ^ K3, 20) - c + n) & _MASK,
    )


def _weak_hash_len32_with_seeds(w: int, x: int, y: int, z: int, a: int, b: int) -> Uint128:
    a = (a + w) & _MASK
    b = _rotate(b + a + z, 21)
    c = a
    a = (a + x + y) & _MASK
    b = (b + _rotate(a, 44)) & _MASK
    return Uint128((a + z) & _MASK, (b + c) & _MASK)


def _weak_hash_at(s: bytes, offset: int, a: int, b: int) -> Uint128:
    w, x, y, z = struct.unpack_from("<4Q", s, offset)
    return _weak_hash_len32_with_seeds(w, x, y, z, a, b)


def _hash_len33to64(s: bytes) -> int:
    n = len(s)
    z = _fetch64(s, 24)
    a = (_fetch64(s) + (n + _fetch64(s, n - 16)) * K0) & _MASK
    b = _rotate(a + z, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(s, 8)) & _MASK
    c = (c + _rotate(a, 7)) & _MASK
    a = (a + _fetch64(s, 16)) & _MASK
    vf = (a + z) & _MASK
    vs = (b + _rotate(a, 31) + c) & _MASK

    a = (_fetch64(s, 16) + _fetch64(s, n - 32)) & _MASK
    z = _fetch64(s, n - 8)
    b = _rotate(a + z, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(s, n - 24)) & _MASK
    c = (c + _rotate(a, 7)) & _MASK
    a = (a + _fetch64(s, n - 16)) & _MASK

    wf = (a + z) & _MASK
    ws = (b + _rotate(a, 31) + c) & _MASK
    r = _shift_mix((vf + ws) * K2 + (wf + vs) * K0)
    return (_shift_mix(r * K0 + vs) * K2) & _MASK


def _mix_chunk(
    s: bytes, pos: int, x: int, y: int, z: int, v: Uint128, w: Uint128
) -> tuple[int, int, int, Uint128, Uint128]:
    """Mix one 64-byte chunk into the state; x and z come back swapped."""
    x = (_rotate(x + y + v.lower + _fetch64(s, pos + 16), 37) * K1) & _MASK
    y = (_rotate(y + v.higher + _fetch64(s, pos + 48), 42) * K1) & _MASK
    x ^= w.higher
    y ^= v.lower
    z = _rotate(z ^ w.lower, 33)
    v = _weak_hash_at(s, pos, (v.higher * K1) & _MASK, (x + w.lower) & _MASK)
    w = _weak_hash_at(s, pos + 32, (z + w.higher) & _MASK, y)
    return z, y, x, v, w


def city_hash64(data: bytes) -> int:
    """Return the 64-bit CityHash of ``data``."""
    s = bytes(data)
    n = len(s)
    if n <= 16:
        return _hash_len0to16(s)
    if n <= 32:
        return _hash_len17to32(s)
    if n <= 64:
        return _hash_len33to64(s)

    x = _fetch64(s)
    y = _fetch64(s, n - 16) ^ K1
    z = _fetch64(s, n - 56) ^ K0
    v = _weak_hash_at(s, n - 64, n, y)
    w = _weak_hash_at(s, n - 32, (n * K1) & _MASK, K0)

    z = (z + _shift_mix(v.higher) * K1) & _MASK
    x = (_rotate(z + x, 39) * K1) & _MASK
    y = (_rotate(y, 33) * K1) & _MASK

    remaining = (n - 1) & ~63
    pos = 0
    while True:
        x, y, z, v, w = _mix_chunk(s, pos, x, y, z, v, w)
        pos += 64
        remaining -= 64
        if remaining == 0:
            break

    return _hash_len16(
        (_hash_len16(v.lower, w.lower) + _shift_mix(y) * K1 + z) & _MASK,
        (_hash_len16(v.higher, w.higher) + x) & _MASK,
    )


def city_hash64_with_seed(data: bytes, seed: int) -> int:
    """Return the 64-bit CityHash of ``data`` mixed with one seed."""
    return city_hash64_with_seeds(data, K2, seed)


def city_hash64_with_seeds(data: bytes, seed0: int, seed1: int) -> int:
    """Return the 64-bit CityHash of ``data`` mixed with two seeds."""
    return _hash_len16((city_hash64(data) - seed0) & _MASK, seed1 & _MASK)


def _city_murmur(s: bytes, seed: Uint128) -> Uint128:
    n = len(s)
    a, b = seed.lower & _MASK, seed.higher & _MASK
    remaining = n - 16

    if remaining <= 0:
        a = (_shift_mix(a * K1) * K1) & _MASK
        c = (b * K1 + _hash_len0to16(s)) & _MASK
        d = _shift_mix(a + (_fetch64(s) if n >= 8 else c))
    else:
        c = _hash_len16((_fetch64(s, n - 8) + K1) & _MASK, a)
        d = _hash_len16((b + n) & _MASK, (c + _fetch64(s, n - 16)) & _MASK)
        a = (a + d) & _MASK
        pos = 0
        while True:
            a ^= (_shift_mix(_fetch64(s, pos) * K1) * K1) & _MASK
            a = (a * K1) & _MASK
            b ^= a
            c ^= (_shift_mix(_fetch64(s, pos + 8) * K1) * K1) & _MASK
            c = (c * K1) & _MASK
            d ^= c
            pos += 16
            remaining -= 16
            if remaining <= 0:
                break

    a = _hash_len16(a, c)
    b = _hash_len16(d, b)
    return Uint128(a ^ b, _hash_len16(b, a))


def city_hash128_with_seed(data: bytes, seed: Uint128) -> Uint128:
    """Return the 128-bit CityHash of ``data`` starting from ``seed``."""
    s = bytes(data)
    n = len(s)
    seed = Uint128(*seed)
    if n < 128:
        return _city_murmur(s, seed)

    x = seed.lower & _MASK
    y = seed.higher & _MASK
    z = (n * K1) & _MASK

    v_lower = (_rotate(y ^ K1, 49) * K1 + _fetch64(s)) & _MASK
    v = Uint128(v_lower, (_rotate(v_lower, 42) * K1 + _fetch64(s, 8)) & _MASK)
    w = Uint128(
        (_rotate(y + z, 35) * K1 + x) & _MASK,
        (_rotate(x + _fetch64(s, 88), 53) * K1) & _MASK,
    )

    pos = 0
    length = n
    while True:
        x, y, z, v, w = _mix_chunk(s, pos, x, y, z, v, w)
        pos += 64
        x, y, z, v, w = _mix_chunk(s, pos, x, y, z, v, w)
        pos += 64
        length -= 128
        if length < 128:
            break

    y = (y + _rotate(w.lower, 37) * K0 + z) & _MASK
    x = (x + _rotate(v.lower + z, 49) * K0) & _MASK

    # Hash up to four 32-byte chunks taken from the end of the input.
    w_lower = w.lower
    tail_done = 0
    while tail_done < length:
        tail_done += 32
        y = (_rotate(y - x, 42) * K0 + v.higher) & _MASK
        w_lower = (w_lower + _fetch64(s, pos + length - tail_done + 16)) & _MASK
        x = (_rotate(x, 49) * K0 + w_lower) & _MASK
        w_lower = (w_lower + v.lower) & _MASK
        v = _weak_hash_at(s, pos + length - tail_done, v.lower, v.higher)
    w = Uint128(w_lower, w.higher)

    x = _hash_len16(x, v.lower)
    y = _hash_len16(y, w.lower)
    return Uint128(
        (_hash_len16((x + v.higher) & _MASK, w.higher) + y) & _MASK,
        _hash_len16((x + w.higher) & _MASK, (y + v.higher) & _MASK),
    )


def city_hash128(data: bytes) -> Uint128:
    """Return the 128-bit CityHash of ``data``."""
    s = bytes(data)
    n = len(s)
    if n >= 16:
        return city_hash128_with_seed(s[16:], Uint128(_fetch64(s) ^ K3, _fetch64(s, 8)))
    if n >= 8:
        return city_hash128_with_seed(
            b"",
            Uint128(_fetch64(s) ^ ((n * K0) & _MASK), _fetch64(s, n - 8) ^ K1),
        )
    return city_hash128_with_seed(s, Uint128(K0, K1))


class City64:
    """Incremental-style interface to :func:`city_hash64`.

    Input is accumulated and hashed as a whole when a digest is requested.
    """

    name = "cityhash64"
    digest_size = 8
    block_size = 1

    def __init__(self, data: bytes = b"") -> None:
        self._buffer = bytearray(data)

    def update(self, data: bytes) -> int:
        """Append ``data`` and return the number of bytes taken."""
        self._buffer += data
        return len(data)

    def intdigest(self) -> int:
        """Return the hash of everything written so far as an integer."""
        return city_hash64(self._buffer)

    def digest(self) -> bytes:
        """Return the hash as 8 big-endian bytes."""
        return self.intdigest().to_bytes(8, "big")

    def hexdigest(self) -> str:
        return self.digest().hex()

    def reset(self) -> None:
        """Forget everything written so far."""
        self._buffer.clear()

    def copy(self) -> City64:
        return City64(bytes(self._buffer))