import pytest

from uwsproto.crc32 import crc32

MASK = 0xFFFFFFFF


def test_check_value():
    assert ~crc32(b"123456789") & MASK == 0xCBF43926


def test_empty_keeps_register():
    assert crc32(b"") == 0xFFFFFFFF
    assert crc32(b"", 0x12345678) == 0x12345678


@pytest.mark.parametrize("split", [0, 1, 4, 9, 20])
def test_pieces_compose(split):
    data = b"The quick brown fox jumps over the lazy dog"
    whole = crc32(data)
    assert crc32(data[split:], crc32(data[:split])) == whole


def test_accepts_memoryview():
    data = b"chunked body"
    assert crc32(memoryview(data)) == crc32(bytearray(data))


@pytest.mark.parametrize("bad", [-1, 1 << 32])
def test_rejects_out_of_range_register(bad):
    with pytest.raises(ValueError):
        crc32(b"x", bad)