import pytest

from xmitreader.utils import (
    decode_ebcdic,
    get_variable_length_int,
    hexdump,
    recfm_byte_to_string,
    recfm_hw_to_string,
)


def test_variable_length_int_two_bytes():
    assert get_variable_length_int(2, b"\x02\x00") == 0x0200
    assert get_variable_length_int(2, b"\x40\x00") == 0x4000


def test_variable_length_int_uses_prefix_only():
    assert get_variable_length_int(1, b"\x80\xff\xff") == 0x80


def test_variable_length_int_zero_bytes():
    assert get_variable_length_int(0, b"\x12") == 0


def test_variable_length_int_short_data():
    with pytest.raises(ValueError):
        get_variable_length_int(4, b"\x01\x02")


@pytest.mark.parametrize(
    "value, expected",
    [(0x8000, "F"), (0x4000, "V"), (0x1000, "B"), (0x0400, "A"), (0x0001, "S"), (0x0800, "S")],
)
def test_recfm_hw_single_bits(value, expected):
    assert recfm_hw_to_string(value) == expected


def test_recfm_hw_combined_order():
    combined = recfm_hw_to_string(0x8000 | 0x1000 | 0x0400)
    assert combined == recfm_hw_to_string(0x8000) + recfm_hw_to_string(0x1000) + recfm_hw_to_string(0x0400)


def test_recfm_hw_empty():
    assert recfm_hw_to_string(0) == ""


@pytest.mark.parametrize(
    "value, expected",
    [(0xC0, "U"), (0x80, "F"), (0x40, "V"), (0x00, "?")],
)
def test_recfm_byte_format_bits(value, expected):
    assert recfm_byte_to_string(value) == expected


def test_recfm_byte_blocked_and_asa():
    assert recfm_byte_to_string(0x80 | 0x10) == recfm_byte_to_string(0x80) + "B"
    assert recfm_byte_to_string(0x40 | 0x10 | 0x04) == recfm_byte_to_string(0x40) + "B" + "A"
    assert recfm_byte_to_string(0x80 | 0x02) == recfm_byte_to_string(0x80) + "C"
    assert recfm_byte_to_string(0x80 | 0x06) == recfm_byte_to_string(0x80)


def test_recfm_byte_spanned():
    assert recfm_byte_to_string(0x40 | 0x08) == recfm_byte_to_string(0x40) + "S"


def test_decode_round_trip_alphanumeric():
    text = "HELLO WORLD 0123456789 abc"
    assert decode_ebcdic(text.encode("cp037"), "IBM-1047") == text


def test_decode_1047_specific_code_points():
    assert decode_ebcdic(b"\x5f", "IBM-1047") == "^"
    assert decode_ebcdic(b"\xad", "IBM-1047") == "["
    assert decode_ebcdic(b"\xbd", "IBM-1047") == "]"


def test_decode_other_code_page_names():
    raw = b"\x5f\xc1"
    assert decode_ebcdic(raw, "IBM-037") == raw.decode("cp037")
    assert decode_ebcdic(raw, "IBM-500") == raw.decode("cp500")


def test_decode_1047_differs_from_037():
    assert decode_ebcdic(b"\x5f", "IBM-1047") != decode_ebcdic(b"\x5f", "IBM-037")
    assert decode_ebcdic(b"\xc1", "IBM-1047") == decode_ebcdic(b"\xc1", "IBM-037")


def test_decode_unknown_encoding():
    with pytest.raises(LookupError):
        decode_ebcdic(b"\xc1", "NO-SUCH-CODEPAGE")


def test_hexdump_shows_text_and_hex():
    raw = "HELLO".encode("cp037")
    dump = hexdump(raw, "IBM-1047")
    assert "|HELLO|" in dump
    assert " ".join(f"{b:02x}" for b in raw) in dump


def test_hexdump_line_count():
    dump = hexdump(bytes(40), "IBM-1047")
    lines = dump.splitlines()
    assert len(lines) == 3
    assert lines[1].startswith("00000010")


def test_hexdump_empty():
    assert hexdump(b"", "IBM-1047") == ""