import pytest

from sdm_encoder.codec import (
    counter_bytes, decode_utf8, encode_utf8, from_hex, length_byte, pad,
    rotate_left, rotate_right, to_hex, truncate_mac, xor,
)


def test_hex_conversion():
    assert to_hex(b"\x0a\xbc") == "0ABC"
    assert from_hex("0a bc:DE-f0") == b"\x0a\xbc\xde\xf0"


@pytest.mark.parametrize("length", range(0, 50))
def test_pad_shape(length):
    data = b"\x11" * length
    padded = pad(data)
    assert len(padded) % 16 == 0
    assert len(padded) > length
    assert padded[:length] == data
    assert padded[length] == 0x80
    assert set(padded[length + 1:]) <= {0}


def test_pad_boundaries():
    assert pad(b"\x00" * 15) == b"\x00" * 15 + b"\x80"
    assert len(pad(b"\x00" * 16)) == 32
    assert pad(b"") == b"\x80" + bytes(15)


def test_repad_adds_one_block():
    padded = pad(b"hello")
    assert len(pad(padded)) == len(padded) + 16


def test_rotation():
    data = bytes(range(16))
    assert rotate_left(data) == bytes(range(1, 16)) + b"\x00"
    assert rotate_right(rotate_left(data)) == data
    assert rotate_left(b"") == b""


def test_xor():
    assert xor(b"\x0f\xf0", b"\xff\xff") == b"\xf0\x0f"
    with pytest.raises(ValueError):
        xor(b"\x00", b"\x00\x00")


def test_truncate_mac_keeps_odd_bytes():
    mac = bytes(range(16))
    assert truncate_mac(mac) == bytes([1, 3, 5, 7, 9, 11, 13, 15])
    mac = bytes.fromhex("FF00EE11DD22CC33BB44AA5599668877")
    assert truncate_mac(mac) == bytes.fromhex("0011223344556677")
    with pytest.raises(ValueError):
        truncate_mac(bytes(8))


def test_counter_is_little_endian():
    assert counter_bytes(0) == b"\x00\x00"
    assert counter_bytes(1) == b"\x01\x00"
    assert counter_bytes(0x0102) == b"\x02\x01"
    with pytest.raises(ValueError):
        counter_bytes(0x10000)


def test_length_byte():
    assert length_byte(b"\x00" * 7) == b"\x07"
    with pytest.raises(ValueError):
        length_byte(bytes(256))


def test_utf8():
    assert encode_utf8("co=é") == b"co=\xc3\xa9"
    assert decode_utf8(b"abc\xff") == "abc\ufffd"
