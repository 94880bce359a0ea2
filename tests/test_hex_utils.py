import pytest

from hex_utils import InputFormatError, bytes_to_hex, hex_to_bytes, is_hex, to_bytes


@pytest.mark.parametrize("value", ["0x", "", "0x0304", "0304", "0xABcd", "deadbeef"])
def test_is_hex_accepts_even_digit_strings(value):
    assert is_hex(value) is True


@pytest.mark.parametrize("value", ["0x030", "abc", "0xzz", "0x 03", "0X0304", "hello", "0x0x00", "0x030\n"])
def test_is_hex_rejects_malformed(value):
    assert is_hex(value) is False


def test_is_hex_rejects_non_strings():
    assert is_hex(b"0304") is False
    assert is_hex(None) is False


def test_hex_to_bytes_with_and_without_prefix():
    assert hex_to_bytes("0x03040a") == b"\x03\x04\x0a"
    assert hex_to_bytes("03040a") == b"\x03\x04\x0a"
    assert hex_to_bytes("0x") == b""


def test_hex_to_bytes_odd_length_fails():
    with pytest.raises(InputFormatError):
        hex_to_bytes("0x123")


def test_input_format_error_is_value_error():
    with pytest.raises(ValueError):
        hex_to_bytes("not hex")


def test_to_bytes_passes_raw_bytes_through():
    assert to_bytes(b"\x01\x02") == b"\x01\x02"
    assert to_bytes(bytearray(b"\x01")) == b"\x01"
    assert to_bytes(memoryview(b"\x01\x02")) == b"\x01\x02"
    assert to_bytes("0x0102") == b"\x01\x02"


def test_to_bytes_rejects_other_types():
    with pytest.raises(InputFormatError):
        to_bytes(1234)


def test_bytes_to_hex():
    assert bytes_to_hex(b"\x00\xff") == "0x00ff"
    assert bytes_to_hex(b"") == "0x"
