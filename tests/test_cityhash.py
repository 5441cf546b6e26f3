import pytest
from hypothesis import given, strategies as st

from chwire.cityhash import (
    K0,
    K1,
    K2,
    City64,
    Uint128,
    city_hash64,
    city_hash64_with_seed,
    city_hash64_with_seeds,
    city_hash128,
    city_hash128_with_seed,
)

MASK = (1 << 64) - 1
EMPTY_HASH64 = 0x9AE16A3B2F90404F

SAMPLE = bytes((i * 131 + 7) % 256 for i in range(600))


def test_empty_input_hash64():
    assert city_hash64(b"") == EMPTY_HASH64


def test_bytes_like_inputs_agree():
    data = SAMPLE[:150]
    expected = city_hash64(data)
    assert city_hash64(bytearray(data)) == expected
    assert city_hash64(memoryview(data)) == expected


def test_text_input_rejected():
    with pytest.raises(TypeError):
        city_hash64("abc")


def test_hash64_prefixes_are_distinct_and_in_range():
    hashes = [city_hash64(SAMPLE[:n]) for n in range(len(SAMPLE) + 1)]
    assert all(0 <= h <= MASK for h in hashes)
    assert len(set(hashes)) == len(hashes)


def test_hash128_prefixes_are_distinct_and_in_range():
    results = [city_hash128(SAMPLE[:n]) for n in range(len(SAMPLE) + 1)]
    for r in results:
        assert 0 <= r.lower <= MASK
        assert 0 <= r.higher <= MASK
    assert len(set(results)) == len(results)


@pytest.mark.parametrize("length", [1, 3, 4, 7, 8, 9, 15, 16, 17, 31, 32, 33, 63, 64, 65, 127, 128, 129, 200, 255, 256, 300])
def test_hash64_sensitive_to_last_byte(length):
    data = bytearray(SAMPLE[:length])
    original = city_hash64(data)
    data[-1] ^= 0x01
    assert {original, city_hash64(data)} == {original, city_hash64(data)} and len({original, city_hash64(data)}) == 2


@pytest.mark.parametrize("length", [1, 7, 8, 15, 16, 17, 100, 143, 144, 145, 200, 300, 500])
def test_hash128_sensitive_to_first_byte(length):
    data = bytearray(SAMPLE[:length])
    original = city_hash128(data)
    data[0] ^= 0x80
    assert len({original, city_hash128(data)}) == 2


@given(st.binary(max_size=300))
def test_hash64_deterministic(data):
    assert city_hash64(data) == city_hash64(bytes(data))


@given(st.binary(max_size=300), st.integers(min_value=0, max_value=MASK))
def test_single_seed_uses_k2_as_first_seed(data, seed):
    assert city_hash64_with_seed(data, seed) == city_hash64_with_seeds(data, K2, seed)


@given(st.binary(max_size=7))
def test_short_hash128_uses_default_seed(data):
    assert city_hash128(data) == city_hash128_with_seed(data, Uint128(K0, K1))


@given(st.binary(max_size=400), st.integers(0, MASK), st.integers(0, MASK))
def test_hash128_with_seed_in_range(data, lo, hi):
    r = city_hash128_with_seed(data, Uint128(lo, hi))
    assert 0 <= r.lower <= MASK and 0 <= r.higher <= MASK
    assert r == city_hash128_with_seed(bytes(data), (lo, hi))


def test_uint128_to_bytes_little_endian():
    value = Uint128(1, 2)
    assert value.to_bytes() == b"\x01" + b"\x00" * 7 + b"\x02" + b"\x00" * 7
    assert value.lower == 1 and value.higher == 2


def test_city64_empty_digest():
    h = City64()
    assert h.intdigest() == EMPTY_HASH64
    assert h.digest() == bytes.fromhex("9ae16a3b2f90404f")


@given(st.lists(st.binary(max_size=80), max_size=8))
def test_city64_chunks_match_one_shot(chunks):
    h = City64()
    for chunk in chunks:
        assert h.update(chunk) == len(chunk)
    joined = b"".join(chunks)
    assert h.intdigest() == city_hash64(joined)
    assert h.digest() == city_hash64(joined).to_bytes(8, "big")


def test_city64_initial_data_and_reset():
    h = City64(SAMPLE[:90])
    assert h.intdigest() == city_hash64(SAMPLE[:90])
    h.reset()
    assert h.intdigest() == EMPTY_HASH64
    h.update(b"abc")
    assert h.intdigest() == city_hash64(b"abc")


def test_city64_digest_sizes():
    h = City64(b"payload")
    assert h.digest_size == 8
    assert len(h.digest()) == 8
    assert int.from_bytes(h.digest(), "big") == h.intdigest()
    assert h.hexdigest() == h.digest().hex()


def test_city64_copy_is_independent():
    h = City64(b"abc")
    clone = h.copy()
    clone.update(b"def")
    assert h.intdigest() == city_hash64(b"abc")
    assert clone.intdigest() == city_hash64(b"abcdef")