"""Byte helpers, DCB record-format decoding and EBCDIC text conversion."""

from __future__ import annotations

import codecs
import re
from functools import lru_cache
from typing import Optional


def _build_cp1047_table() -> str:
    # IBM-1047 is CP037 with six code points moved around.
    table = list(bytes(range(256)).decode("cp037"))
    for code, char in {
        0x5F: "\u005e",  # ^
        0xAD: "\u005b",  # [
        0xB0: "\u00ac",  # not sign
        0xBA: "\u00dd",  # Y acute
        0xBB: "\u00a8",  # diaeresis
        0xBD: "\u005d",  # ]
    }.items():
        table[code] = char
    return "".join(table)


_CP1047_TABLE = _build_cp1047_table()
_CP1047_NAMES = {"IBM-1047", "IBM1047", "CP1047", "1047"}
_IBM_NAME = re.compile(r"(?:IBM-?|CP)?0*(\d+)")


@lru_cache(maxsize=None)
def _python_codec(encoding: str) -> Optional[str]:
    """Return the Python codec for an encoding name, or None for IBM-1047."""
    name = encoding.strip().upper()
    if name in _CP1047_NAMES:
        return None
    match = _IBM_NAME.fullmatch(name)
    if match:
        number = int(match.group(1))
        for candidate in (f"cp{number:03d}", f"cp{number}"):
            try:
                return codecs.lookup(candidate).name
            except LookupError:
                continue
    return codecs.lookup(encoding).name


def decode_ebcdic(data: bytes, encoding: str = "IBM-1047") -> str:
    """Decode EBCDIC bytes with the named code page (e.g. "IBM-1047", "IBM-037")."""
    codec = _python_codec(encoding)
    raw = bytes(data)
    if codec is None:
        return codecs.charmap_decode(raw, "strict", _CP1047_TABLE)[0]
    return raw.decode(codec)


def get_variable_length_int(numbytes: int, data: bytes) -> int:
    """Read a big-endian unsigned integer from the first ``numbytes`` bytes."""
    if len(data) < numbytes:
        raise ValueError(f"need {numbytes} bytes, got {len(data)}")
    return int.from_bytes(bytes(data[:numbytes]), "big")


def recfm_hw_to_string(recfm: int) -> str:
    """Render the RECFM halfword of an INMR02 record as a string like "FB"."""
    parts = [
        "F" if recfm & 0x8000 else "",
        "V" if recfm & 0x4000 else "",
        "B" if recfm & 0x1000 else "",
        "A" if recfm & 0x0400 else "",
        "S" if recfm & 0x0801 else "",
    ]
    return "".join(parts)


def recfm_byte_to_string(recfm_byte: int) -> str:
    """Render a DCB RECFM byte as a string like "FB" or "VBA"."""
    result = {0b11: "U", 0b01: "V", 0b10: "F"}.get((recfm_byte & 0xC0) >> 6, "?")
    if recfm_byte & 0x10:
        result += "B"
    if recfm_byte & 0x08:
        result += "S"
    result += {0b01: "C", 0b10: "A"}.get((recfm_byte & 0x06) >> 1, "")
    return result


def hexdump(data: bytes, encoding: str = "IBM-1047") -> str:
    """Format bytes as a hex dump with the EBCDIC text on the right."""
    raw = bytes(data)
    lines = []
    for offset in range(0, len(raw), 16):
        chunk = raw[offset:offset + 16]
        hex_part = " ".join(f"{byte:02x}" for byte in chunk)
        text = "".join(
            char if char.isprintable() else "."
            for char in decode_ebcdic(chunk, encoding)
        )
        lines.append(f"{offset:08x}  {hex_part:<47}  |{text}|")
    return "\n".join(lines)