"""Text units carried in XMIT control records."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple, Union


class TextUnitId(IntEnum):
    """Known text unit keys."""

    INMBLKSZ = 0x0030  # Block size
    INMCREAT = 0x1022  # Creation date
    INMDDNAM = 0x0001  # DDNAME for the file
    INMDIR = 0x000C  # Number of directory blocks
    INMDSNAM = 0x0002  # Name of the file
    INMDSORG = 0x003C  # File organization
    INMEATTR = 0x8028  # Extended attribute status
    INMERRCD = 0x1027  # RECEIVE command error code
    INMEXPDT = 0x0022  # Expiration date
    INMFACK = 0x1026  # Originator requested notification
    INMFFM = 0x102D  # Filemode number
    INMFNODE = 0x1011  # Origin node name or node number
    INMFTIME = 0x1024  # Origin timestamp
    INMFUID = 0x1012  # Origin user ID
    INMFVERS = 0x1023  # Origin version number of the data format
    INMLCHG = 0x1021  # Date last changed
    INMLRECL = 0x0042  # Logical record length
    INMLREF = 0x1020  # Date last referenced
    INMLSIZE = 0x8018  # Data set size in megabytes
    INMMEMBR = 0x0003  # Member name list
    INMNUMF = 0x102F  # Number of files transmitted
    INMRECCT = 0x102A  # Transmitted record count
    INMRECFM = 0x0049  # Record format
    INMSECND = 0x000B  # Secondary space quantity
    INMSIZE = 0x102C  # File size in bytes
    INMTERM = 0x0028  # Data transmitted as a message
    INMTNODE = 0x1001  # Target node name or node number
    INMTTIME = 0x1025  # Destination timestamp
    INMTUID = 0x1002  # Target user ID
    INMTYPE = 0x8012  # Data set type
    INMUSERP = 0x1029  # User parameter string
    INMUTILN = 0x1028  # Name of utility program


@dataclass(frozen=True)
class TextUnit:
    """A key with its list of length-prefixed values."""

    id: Union[TextUnitId, int]
    values: Tuple[bytes, ...]

    @property
    def count(self) -> int:
        return len(self.values)


def parse_text_unit(raw: bytes) -> Tuple[TextUnit, int]:
    """Parse one text unit; return it with the number of bytes consumed."""
    raw = bytes(raw)
    if len(raw) < 4:
        raise ValueError("not enough data for a text unit header")
    key, count = struct.unpack_from(">HH", raw, 0)
    pos = 4
    values = []
    for _ in range(count):
        if len(raw) - pos < 2:
            raise ValueError("not enough data for a text unit value length")
        (length,) = struct.unpack_from(">H", raw, pos)
        pos += 2
        if len(raw) - pos < length:
            raise ValueError("not enough data for a text unit value")
        values.append(raw[pos:pos + length])
        pos += length
    try:
        unit_id: Union[TextUnitId, int] = TextUnitId(key)
    except ValueError:
        unit_id = key
    return TextUnit(unit_id, tuple(values)), pos


def parse_text_units(data: bytes) -> List[TextUnit]:
    """Parse a run of consecutive text units."""
    units = []
    rest = bytes(data)
    while rest:
        unit, consumed = parse_text_unit(rest)
        units.append(unit)
        rest = rest[consumed:]
    return units