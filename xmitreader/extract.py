"""Extraction of members from an IEBCOPY unload file into text files."""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import BinaryIO, Iterator, Mapping, Union

from .unload_records import MemberEntry
from .utils import decode_ebcdic, hexdump
from .xmit import XmitFileParams

logger = logging.getLogger(__name__)

_BLOCK_HEADER_SIZE = 8
_DATA_HEADER_SIZE = 12
_DATA_FLAGS = (0x00, 0x80)  # 0x80 marks the end block of an unloaded PDSE


def generate_files(
    members: Mapping[int, MemberEntry],
    unload_file: BinaryIO,
    outdir: Union[str, Path],
    extension: str,
    params: XmitFileParams,
    encoding: str = "IBM-1047",
) -> int:
    """Write every member to ``outdir`` as NAME.extension; return how many were written."""
    written = 0
    suffix = extension.strip(" ")
    for entry in members.values():
        path = Path(outdir) / f"{entry.member_name.strip(' ')}.{suffix}"
        write_member(unload_file, entry.file_ptr, path, params, encoding)
        written += 1
    return written


def _member_blocks(stream: BinaryIO, encoding: str) -> Iterator[bytes]:
    """Yield the record data of each data block of a member, up to its end marker."""
    while True:
        header = stream.read(_BLOCK_HEADER_SIZE)
        if not header:
            raise EOFError("unexpected end of unload data")
        if len(header) != _BLOCK_HEADER_SIZE:
            raise ValueError(f"expected to read 8 bytes, got {len(header)}")
        (block_len,) = struct.unpack_from(">H", header)
        size = block_len - _BLOCK_HEADER_SIZE
        if size < _DATA_HEADER_SIZE:
            raise ValueError(f"invalid unload block length {block_len}")
        body = stream.read(size)
        if not body:
            raise EOFError("unexpected end of unload data")
        if len(body) != size:
            raise ValueError(f"expected to read {size} bytes, got {len(body)}")
        flag = body[0]
        if flag not in _DATA_FLAGS:
            logger.debug("Non data block: %02x", flag)
            continue
        if size == _DATA_HEADER_SIZE:
            logger.debug("End of member block found")
            return
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("\n%s", hexdump(body[:_DATA_HEADER_SIZE], encoding))
        yield body[_DATA_HEADER_SIZE:]


def _fixed_records(payload: bytes, lrecl: int) -> Iterator[bytes]:
    """Yield the complete fixed-length records of a block; a trailing fragment is dropped."""
    if lrecl <= 0:
        return
    complete = len(payload) - len(payload) % lrecl
    for start in range(0, complete, lrecl):
        yield payload[start:start + lrecl]


def write_member(
    unload_file: BinaryIO,
    position: int,
    path: Union[str, Path],
    params: XmitFileParams,
    encoding: str = "IBM-1047",
) -> None:
    """Write the member that starts at ``position`` of the unload file to ``path``."""
    logger.debug("Writing member data to %s", path)
    variable_length = params.source_recfm.startswith("V")
    lrecl = params.source_lrecl
    unload_file.seek(position)
    with open(path, "w", encoding="utf-8", newline="\n") as member_file:
        logger.info("Writing file %s", path)
        for payload in _member_blocks(unload_file, encoding):
            if variable_length:
                raise ValueError("variable length records are not supported")
            for record in _fixed_records(payload, lrecl):
                member_file.write(decode_ebcdic(record, encoding) + "\n")