"""Reading of IEBCOPY unload files: directory, member locations and extraction."""

from __future__ import annotations

import io
import json
import logging
import struct
from dataclasses import asdict
from operator import attrgetter
from pathlib import Path
from typing import BinaryIO, Dict, List, Sequence, Union

from .extract import generate_files
from .unload_records import (
    COPYR1_SIZE,
    COPYR2_SIZE,
    DIR_BLOCK_SIZE,
    Copyr1,
    Copyr2,
    MemberEntry,
    parse_copyr1,
    parse_copyr2,
)
from .utils import decode_ebcdic, hexdump
from .xmit import XmitFileParams

logger = logging.getLogger(__name__)

_HEADER_SIZE = 8
_END_BLOCK_LEN = 12
_END_RECORD_LEN = _HEADER_SIZE + _END_BLOCK_LEN
_PDS_FILLER = 12
_DIR_PREFIX = 12
_LAST_ENTRY_MARK = b"\xff" * 8
_ENTRY_LOCATION = struct.Struct(">HB")
_DATA_ADDRESS = struct.Struct(">HHB")


class UnloadError(ValueError):
    """The unload data is truncated or malformed."""


def _json_default(value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if not data:
        raise UnloadError(f"failed to read {what}: end of file")
    if len(data) != size:
        raise UnloadError(f"expected {size} bytes for {what}, got {len(data)} bytes")
    return data


def process_unload_file(
    in_file: BinaryIO,
    target_dir: Union[str, Path],
    type_ext: str,
    params: XmitFileParams,
    encoding: str = "IBM-1047",
) -> int:
    """Expand every member of an unload stream into ``target_dir``; return the count."""
    copyr1 = parse_copyr1(_read_exact(in_file, COPYR1_SIZE, "COPYR1 record"))
    copyr2 = parse_copyr2(_read_exact(in_file, COPYR2_SIZE, "COPYR2 record"))
    debugging = logger.isEnabledFor(logging.DEBUG)
    if debugging:
        logger.debug("COPYR1: %s", json.dumps(asdict(copyr1), indent=2))
        logger.debug(
            "COPYR2: %s", json.dumps(asdict(copyr2), indent=2, default=_json_default)
        )

    blocks = read_dir_blocks(in_file)
    if debugging:
        for number, block in enumerate(blocks):
            logger.debug("Directory block number %d\n%s", number, hexdump(block, encoding))

    members = process_dir_blocks(blocks, encoding)
    if not copyr1.is_pdse():
        # A PDS unload carries 12 more bytes after the directory.
        in_file.read(_PDS_FILLER)

    process_data_records(in_file, members, copyr1, copyr2, encoding)
    count = generate_files(members, in_file, target_dir, type_ext, params, encoding)

    if debugging:
        for entry in sorted(members.values(), key=attrgetter("ttr")):
            logger.debug(
                "Member %-8s(%06x): TT: 0x%04x, R: 0x%02x, Ptr: %016x",
                entry.member_name,
                entry.ttr,
                entry.track,
                entry.offset,
                entry.file_ptr,
            )
    return count


def read_dir_blocks(in_file: BinaryIO) -> List[bytes]:
    """Read the directory records up to the end-of-directory record."""
    blocks: List[bytes] = []
    while True:
        header = in_file.read(_HEADER_SIZE)
        if not header:
            return blocks
        if len(header) != _HEADER_SIZE:
            raise UnloadError(f"expected 8 bytes, read {len(header)}")
        (length,) = struct.unpack_from(">H", header)
        block_len = (length - _HEADER_SIZE) & 0xFFFF
        if block_len == _END_BLOCK_LEN:
            in_file.read(_END_BLOCK_LEN)
            return blocks
        count, remainder = divmod(block_len, DIR_BLOCK_SIZE)
        for _ in range(count):
            block = in_file.read(DIR_BLOCK_SIZE)
            if not block:
                return blocks
            if len(block) != DIR_BLOCK_SIZE:
                raise UnloadError(
                    f"expected {DIR_BLOCK_SIZE} bytes of directory block, got {len(block)}"
                )
            logger.debug("\n%s", hexdump(block, "IBM-1047"))
            blocks.append(bytes(block))
        if remainder:
            return blocks


def process_dir_blocks(
    blocks: Sequence[bytes], encoding: str = "IBM-1047"
) -> Dict[int, MemberEntry]:
    """Collect the member entries of the directory blocks, keyed by TTR."""
    entries: Dict[int, MemberEntry] = {}
    for block in blocks:
        stream = io.BytesIO(bytes(block))
        stream.seek(_DIR_PREFIX)
        last_name = decode_ebcdic(stream.read(8), encoding)
        stream.seek(2, io.SEEK_CUR)
        while True:
            name_bytes = stream.read(8)
            if name_bytes == _LAST_ENTRY_MARK:
                break
            location = stream.read(_ENTRY_LOCATION.size)
            if len(name_bytes) < 8 or len(location) < _ENTRY_LOCATION.size:
                break
            track, record = _ENTRY_LOCATION.unpack(location)
            name = decode_ebcdic(name_bytes, encoding)
            entry = MemberEntry(member_name=name, track=track, offset=record)
            entries[entry.ttr] = entry
            if name == last_name:
                break
            indicator = stream.read(1)
            if not indicator:
                break
            # The low five bits count halfwords of user data.
            stream.seek((indicator[0] & 0x1F) * 2, io.SEEK_CUR)
    return entries


def process_data_records(
    in_file: BinaryIO,
    members: Dict[int, MemberEntry],
    copyr1: Copyr1,
    copyr2: Copyr2,
    encoding: str = "IBM-1047",
) -> None:
    """Record in ``members`` the file position of each member's first data record."""
    while True:
        position = in_file.tell()
        header = in_file.read(_HEADER_SIZE)
        if not header:
            return
        if len(header) != _HEADER_SIZE:
            raise UnloadError(f"error reading record head, read {len(header)} bytes")
        (length,) = struct.unpack_from(">H", header)
        if length == _END_RECORD_LEN:
            in_file.read(_END_BLOCK_LEN)
            continue
        size = length - _HEADER_SIZE
        if size <= 0:
            raise UnloadError(f"invalid unload record length {length}")
        body = in_file.read(size)
        if len(body) != size:
            raise UnloadError(f"expected {size} bytes of record data, got {len(body)}")
        if body[0] != 0x00:
            continue
        if size < 4 + _DATA_ADDRESS.size:
            raise UnloadError(f"data record too short: {size} bytes")
        low_cyl, head_word, record = _DATA_ADDRESS.unpack_from(body, 4)
        cylinder = low_cyl + ((head_word & 0xFFF0) << 12)
        track = find_relative_track(cylinder, head_word & 0x0F, copyr1, copyr2)
        ttr = (track << 8) + record
        entry = members.get(ttr)
        if entry is None:
            logger.debug(
                "Member with ttr %04x:%02x not found. len=%d, offset=%d",
                ttr >> 8, ttr & 0xFF, length, position,
            )
        else:
            logger.debug(
                "Member with ttr %04x:%02x found (%s), len=%d, offset=%d",
                ttr >> 8, ttr & 0xFF, entry.member_name, length, position,
            )
            entry.file_ptr = position
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("\n%s", hexdump(body[9:73], encoding))


def find_relative_track(cyl: int, head: int, copyr1: Copyr1, copyr2: Copyr2) -> int:
    """Turn a cylinder/head address into a track number relative to the dataset."""
    per_cylinder = copyr1.tracks_per_cyl
    relative = 0
    for extent in copyr2.extensions:
        if extent.start_cylinder <= cyl <= extent.end_cylinder:
            relative += (cyl - extent.start_cylinder) * per_cylinder + head - extent.start_track
            break
        relative += per_cylinder
    return relative & 0xFFFFFFFF