"""Logical records of an XMIT (TSO TRANSMIT) file."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import BinaryIO, List

from .textunits import TextUnit, parse_text_units
from .utils import decode_ebcdic


class RecordFlags(IntFlag):
    """Segment flag bits of an XMIT record."""

    NONE = 0x00
    FIRST_SEGMENT = 0x80
    LAST_SEGMENT = 0x40
    CONTROL_RECORD = 0x20
    RECORD_NUMBER = 0x10


@dataclass(frozen=True)
class XmitRecord:
    """One segment: its length byte, its flags and its data."""

    length: int
    flags: RecordFlags
    data: bytes

    @property
    def is_control(self) -> bool:
        return bool(self.flags & RecordFlags.CONTROL_RECORD)

    def record_id(self) -> str:
        """Return the control record name (e.g. "INMR01"), or "" for data."""
        if not self.is_control or len(self.data) < 6:
            return ""
        try:
            return decode_ebcdic(self.data[:6], "IBM-1047")
        except UnicodeDecodeError:
            return ""

    def text_units(self, offset: int = 0) -> List[TextUnit]:
        """Parse the text units that follow the record name and ``offset`` bytes."""
        if not self.is_control:
            return []
        return parse_text_units(self.data[6 + offset:])


def read_record(stream: BinaryIO) -> XmitRecord:
    """Read one record from a binary stream; raise EOFError at the end."""
    header = stream.read(2)
    if not header:
        raise EOFError("end of XMIT data")
    if len(header) < 2:
        raise EOFError("unexpected end of XMIT data in record header")
    length, flags = header[0], header[1]
    if length < 2:
        raise ValueError(f"invalid XMIT record length {length}")
    data = stream.read(length - 2)
    if len(data) < length - 2:
        raise EOFError(f"expected {length - 2} bytes of record data, got {len(data)}")
    return XmitRecord(length, RecordFlags(flags), bytes(data))