"""IEBCOPY unload control records (COPYR1, COPYR2) and member entries."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List

from .utils import recfm_byte_to_string

COPYR1_SIZE = 64
COPYR2_SIZE = 284
DIR_BLOCK_SIZE = 276
EXTENT_COUNT = 16

_COPYR1_LAYOUT = struct.Struct(">B3xHHHB5xIIHHH")
_EXTENT_LAYOUT = struct.Struct(">5xBHHHHH")

_UNIT_NAMES = {
    0x04: "9345",
    0x0E: "3380",
    0x0F: "3390",
    0x80: "3480",
    0x81: "3490",
    0x83: "3590",
    0x01: "2540",
    0x06: "3505",
    0x08: "1403",
    0x09: "3211",
    0x0B: "3203",
    0x0C: "3525",
}


@dataclass
class Copyr1:
    """First IEBCOPY unload control record: attributes of the unloaded dataset."""

    ds_flags: int
    ds_org: str
    ds_blksize: int
    ds_lrecl: int
    ds_recfm: str
    dva_class: str
    dva_unit: str
    max_block: int
    max_track: int
    num_cyls: int
    tracks_per_cyl: int

    def is_pdse(self) -> bool:
        return bool(self.ds_flags & 0x01)


def _device_class(word: int) -> str:
    if word & 0x8000:
        return "magtape"
    if word & 0x4000:
        return "UR"
    if word & 0x2000:
        return "dasd"
    if word & 0x1000:
        return "display"
    return "char reader"


def _device_unit(word: int, dva_class: str) -> str:
    code = word & 0xFF
    if code == 0x03:
        return "3420" if dva_class == "magtape" else "1442"
    return _UNIT_NAMES.get(code, "")


def parse_copyr1(raw: bytes) -> Copyr1:
    """Decode a 64-byte COPYR1 record."""
    if len(raw) != COPYR1_SIZE:
        raise ValueError(
            f"invalid Copyr1 record length: expected {COPYR1_SIZE}, got {len(raw)}"
        )
    (
        ds_flags,
        _dsorg,
        blksize,
        lrecl,
        recfm,
        device_word,
        max_block,
        num_cyls,
        tracks_per_cyl,
        max_track,
    ) = _COPYR1_LAYOUT.unpack_from(bytes(raw), 8)
    dva_class = _device_class(device_word)
    return Copyr1(
        ds_flags=ds_flags,
        ds_org="",
        ds_blksize=blksize,
        ds_lrecl=lrecl,
        ds_recfm=recfm_byte_to_string(recfm),
        dva_class=dva_class,
        dva_unit=_device_unit(device_word, dva_class),
        max_block=max_block & 0xFFFF,
        max_track=max_track,
        num_cyls=num_cyls,
        tracks_per_cyl=tracks_per_cyl,
    )


@dataclass
class Extension:
    """One DASD extent of the unloaded dataset."""

    num_tracks: int
    start_cylinder: int
    start_track: int
    end_cylinder: int
    end_track: int


@dataclass
class Copyr2:
    """Second IEBCOPY unload control record: the dataset's extents."""

    deb_tail: bytes
    extensions: List[Extension]


def _cylinder(low: int, high_and_track: int) -> int:
    # The upper 12 bits of the second halfword extend the cylinder number.
    return low + ((high_and_track & 0xFFF0) << 12)


def parse_copyr2(raw: bytes) -> Copyr2:
    """Decode a 284-byte COPYR2 record."""
    if len(raw) != COPYR2_SIZE:
        raise ValueError(
            f"invalid Copyr2 record length: expected {COPYR2_SIZE}, got {len(raw)}"
        )
    raw = bytes(raw)
    deb_tail = raw[8:24]
    extensions = []
    for index in range(EXTENT_COUNT):
        hi_tracks, lo_start, hi_start, lo_end, hi_end, lo_tracks = _EXTENT_LAYOUT.unpack_from(
            raw, 24 + index * _EXTENT_LAYOUT.size
        )
        extensions.append(
            Extension(
                num_tracks=lo_tracks + (hi_tracks << 16),
                start_cylinder=_cylinder(lo_start, hi_start),
                start_track=hi_start & 0x0F,
                end_cylinder=_cylinder(lo_end, hi_end),
                end_track=hi_end & 0x0F,
            )
        )
    return Copyr2(deb_tail=deb_tail, extensions=extensions)


@dataclass
class MemberEntry:
    """A directory entry: member name, its TTR and its position in the unload file."""

    member_name: str
    track: int
    offset: int
    file_ptr: int = 0

    @property
    def ttr(self) -> int:
        return (self.track << 8) + self.offset