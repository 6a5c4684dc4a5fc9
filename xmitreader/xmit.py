"""Reading of XMIT (TSO TRANSMIT) files into their parameters and unload data."""

from __future__ import annotations

import json
import logging
import re
import struct
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import BinaryIO, List, Optional

from .records import RecordFlags, XmitRecord, read_record
from .textunits import TextUnit, TextUnitId
from .utils import decode_ebcdic, get_variable_length_int, recfm_hw_to_string

logger = logging.getLogger(__name__)

_TIMESTAMP = re.compile(r"\d{14}")
_DATE = re.compile(r"\d{8}")

_DSORG_NAMES = {
    0x0008: ("VSAM", None),
    0x0200: ("PO", "PDS"),
    0x4000: ("PS", None),
}

_DSTYPE_NAMES = {
    0x80: "LIBRARY",
    0x40: "PGMLIB",
    0x04: "EXTENDED",
    0x01: "LARGE",
}


class XmitFormatError(ValueError):
    """The input is not a well-formed XMIT file."""


@dataclass
class XmitFileParams:
    """Attributes of one transmitted dataset, from an INMR02 record."""

    source_ddname: str = ""
    source_dsname: str = ""
    source_dsorg: str = ""
    source_dstype: str = ""
    source_creation: Optional[datetime] = None
    source_recfm: str = ""
    source_lrecl: int = 0
    source_blksize: int = 0
    aprox_size: int = 0
    util_pgm_name: str = ""


@dataclass
class XmitParams:
    """Header information of an XMIT file, from INMR01 and INMR02 records."""

    source_node_name: str = ""
    source_user_id: str = ""
    source_timestamp: Optional[datetime] = None
    num_files: int = 0
    xmit_files: List[XmitFileParams] = field(default_factory=list)


def _parse_timestamp(text: str, pattern: re.Pattern, layout: str) -> Optional[datetime]:
    if not pattern.fullmatch(text):
        return None
    try:
        return datetime.strptime(text, layout)
    except ValueError:
        return None


def _text_units(record: XmitRecord, offset: int) -> List[TextUnit]:
    try:
        return record.text_units(offset)
    except ValueError as exc:
        raise XmitFormatError(f"malformed text unit in {record.record_id()}: {exc}") from exc


def _apply_header(params: XmitParams, record: XmitRecord, encoding: str) -> None:
    for unit in _text_units(record, 0):
        if not unit.values:
            continue
        value = unit.values[0]
        if unit.id == TextUnitId.INMNUMF:
            params.num_files = get_variable_length_int(len(value), value)
        elif unit.id == TextUnitId.INMFUID:
            params.source_user_id = decode_ebcdic(value, encoding)
        elif unit.id == TextUnitId.INMFNODE:
            params.source_node_name = decode_ebcdic(value, encoding)
        elif unit.id == TextUnitId.INMFTIME:
            text = decode_ebcdic(value, encoding)
            stamp = _parse_timestamp(text, _TIMESTAMP, "%Y%m%d%H%M%S")
            if stamp is None:
                logger.warning("Error parsing timestamp: %r", text)
            else:
                params.source_timestamp = stamp


def _file_params(record: XmitRecord, encoding: str) -> XmitFileParams:
    params = XmitFileParams()
    for unit in _text_units(record, 4):
        if not unit.values:
            continue
        value = unit.values[0]
        if unit.id == TextUnitId.INMUTILN:
            params.util_pgm_name = decode_ebcdic(value, "IBM-1047")
        elif unit.id == TextUnitId.INMDSORG:
            dsorg, dstype = _DSORG_NAMES.get(
                get_variable_length_int(2, value), ("UNKNOWN", None)
            )
            params.source_dsorg = dsorg
            if dstype is not None:
                params.source_dstype = dstype
        elif unit.id == TextUnitId.INMTYPE:
            dstype = _DSTYPE_NAMES.get(value[0]) if value else None
            if dstype is not None:
                params.source_dstype = dstype
        elif unit.id == TextUnitId.INMRECFM:
            recfm = get_variable_length_int(len(value), value)
            params.source_recfm = recfm_hw_to_string(recfm & 0xFFFF)
        elif unit.id == TextUnitId.INMCREAT:
            text = decode_ebcdic(value, "IBM-1047")
            params.source_creation = _parse_timestamp(text, _DATE, "%Y%m%d")
        elif unit.id == TextUnitId.INMLRECL:
            params.source_lrecl = get_variable_length_int(len(value), value)
        elif unit.id == TextUnitId.INMBLKSZ:
            params.source_blksize = get_variable_length_int(len(value), value)
        elif unit.id == TextUnitId.INMSIZE:
            params.aprox_size = get_variable_length_int(len(value), value)
        elif unit.id == TextUnitId.INMDDNAM:
            params.source_ddname = decode_ebcdic(value, encoding)
        elif unit.id == TextUnitId.INMDSNAM:
            params.source_dsname = ".".join(
                decode_ebcdic(part, encoding) for part in unit.values
            )
        else:
            logger.debug("Unknown text unit ID: %04x", int(unit.id))
    return params


def process_xmit_file(
    in_file: BinaryIO, unload_file: BinaryIO, encoding: str = "IBM-1047"
) -> XmitParams:
    """Read an XMIT stream, write its reassembled data blocks to ``unload_file``
    and return the transmission parameters."""
    params = XmitParams()
    found_header = False
    block: Optional[bytearray] = None

    while True:
        try:
            record = read_record(in_file)
        except (EOFError, ValueError) as exc:
            raise XmitFormatError(str(exc)) from exc
        record_id = record.record_id()
        logger.debug(
            "Record Length: %3d, flags: %08b, id: %s",
            record.length,
            int(record.flags),
            record_id,
        )

        if record_id == "INMR01":
            found_header = True
            _apply_header(params, record, encoding)
        elif record_id == "INMR02":
            params.xmit_files.append(_file_params(record, encoding))
        elif record_id == "INMR06":
            logger.debug("End of XMIT file processing.")
            break
        elif record_id in ("INMR03", "INMR04", "INMR07"):
            continue
        else:
            if not found_header:
                raise XmitFormatError("this does not look like an XMIT file")
            if record.flags & RecordFlags.FIRST_SEGMENT:
                block = bytearray()
            if block is None:
                raise XmitFormatError("data segment found before a first segment")
            block += record.data
            if record.flags & RecordFlags.LAST_SEGMENT:
                unload_file.write(struct.pack(">HHI", (len(block) + 8) & 0xFFFF, 0, 0))
                unload_file.write(bytes(block))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "XMIT parameters: %s", json.dumps(asdict(params), indent=2, default=str)
        )
    return params