import io
import struct

import pytest

from xmitreader.unload import (
    UnloadError,
    find_relative_track,
    process_data_records,
    process_dir_blocks,
    process_unload_file,
    read_dir_blocks,
)
from xmitreader.unload_records import DIR_BLOCK_SIZE, parse_copyr1, parse_copyr2
from xmitreader.xmit import XmitFileParams

TRACKS_PER_CYL = 15


def ebc(text, width):
    return text.encode("cp037").ljust(width, b"\x40")


def copyr1(flags=0):
    body = struct.pack(
        ">B3xHHHB5xIIHHH", flags, 0x0200, 3120, 80, 0x90, 0x200F, 0, 100, TRACKS_PER_CYL, 0
    )
    return bytes(8) + body.ljust(56, b"\0")


def copyr2(*extents):
    raw = bytearray(bytes(24))
    for start_cyl, start_trk, end_cyl, end_trk in extents:
        raw += struct.pack(">5xBHHHHH", 0, start_cyl, start_trk, end_cyl, end_trk, 0)
    return bytes(raw.ljust(284, b"\0"))


def dir_block(entries, last_name, terminate=False):
    raw = bytearray(bytes(12) + ebc(last_name, 8) + bytes(2))
    for name, track, rel, halfwords in entries:
        raw += ebc(name, 8) + struct.pack(">HBB", track, rel, halfwords) + bytes(2 * halfwords)
    if terminate:
        raw += b"\xff" * 8
    return bytes(raw.ljust(DIR_BLOCK_SIZE, b"\0"))


def record(body):
    return struct.pack(">H6x", len(body) + 8) + body


END = record(bytes(12))


def data_record(cyl, head, rel, payload, flag=0):
    return record(bytes([flag, 0, 0, 0]) + struct.pack(">HHB", cyl, head, rel) + bytes(3) + payload)


@pytest.fixture
def control():
    return parse_copyr1(copyr1()), parse_copyr2(copyr2((0, 0, 9, 14)))


def test_relative_track_in_first_cylinder_is_head(control):
    c1, c2 = control
    assert [find_relative_track(0, head, c1, c2) for head in range(15)] == list(range(15))


def test_relative_track_grows_by_tracks_per_cylinder(control):
    c1, c2 = control
    for cyl in range(9):
        step = find_relative_track(cyl + 1, 4, c1, c2) - find_relative_track(cyl, 4, c1, c2)
        assert step == c1.tracks_per_cyl


def test_relative_track_in_second_extent():
    c1 = parse_copyr1(copyr1())
    c2 = parse_copyr2(copyr2((0, 0, 9, 14), (20, 0, 29, 14)))
    assert find_relative_track(20, 0, c1, c2) == c1.tracks_per_cyl
    assert find_relative_track(20, 5, c1, c2) == c1.tracks_per_cyl + 5


def test_relative_track_honours_start_track():
    c1 = parse_copyr1(copyr1())
    c2 = parse_copyr2(copyr2((5, 3, 9, 14)))
    assert find_relative_track(5, 3, c1, c2) == 0


def test_process_dir_blocks_reads_entries_and_skips_user_data():
    block = dir_block([("ALPHA", 0, 1, 0), ("BETA", 0, 3, 2), ("GAMMA", 1, 2, 0)], "GAMMA")
    members = process_dir_blocks([block], "IBM-1047")
    assert [(e.member_name.strip(), e.track, e.offset) for e in members.values()] == [
        ("ALPHA", 0, 1),
        ("BETA", 0, 3),
        ("GAMMA", 1, 2),
    ]
    assert all(key == entry.ttr for key, entry in members.items())
    assert all(entry.file_ptr == 0 for entry in members.values())


def test_process_dir_blocks_stops_at_terminator_and_joins_blocks():
    first = dir_block([("ONE", 0, 1, 0)], "ZZZ", terminate=True)
    second = dir_block([("TWO", 0, 2, 0)], "TWO")
    members = process_dir_blocks([first, second], "IBM-1047")
    assert [e.member_name.strip() for e in members.values()] == ["ONE", "TWO"]


def test_read_dir_blocks_returns_blocks_and_stops_after_end():
    blocks = [dir_block([("A", 0, 1, 0)], "A"), dir_block([("B", 0, 2, 0)], "B")]
    stream = io.BytesIO(record(blocks[0]) + record(blocks[1]) + END + b"REST")
    assert read_dir_blocks(stream) == blocks
    assert stream.read() == b"REST"


def test_read_dir_blocks_stops_on_partial_block_length():
    block = dir_block([("A", 0, 1, 0)], "A")
    stream = io.BytesIO(record(block + bytes(12)) + b"REST")
    assert read_dir_blocks(stream) == [block]
    assert stream.read() == bytes(12) + b"REST"


def test_read_dir_blocks_empty_stream():
    assert read_dir_blocks(io.BytesIO(b"")) == []


def test_read_dir_blocks_truncated_header():
    with pytest.raises(UnloadError):
        read_dir_blocks(io.BytesIO(b"\x01\x02\x03"))


def test_process_data_records_sets_positions(control):
    c1, c2 = control
    members = process_dir_blocks([dir_block([("A", 0, 1, 0), ("B", 2, 1, 0)], "B")], "IBM-1047")
    other = data_record(0, 0, 1, ebc("NOTES", 80), flag=0x01)
    first = data_record(0, 0, 1, ebc("X", 80))
    unknown = data_record(3, 0, 1, ebc("Y", 80))
    second = data_record(0, 2, 1, ebc("Z", 80))
    stream = io.BytesIO(other + first + END + unknown + END + second + END)
    process_data_records(stream, members, c1, c2, "IBM-1047")
    positions = {e.member_name.strip(): e.file_ptr for e in members.values()}
    assert positions == {
        "A": len(other),
        "B": len(other + first + END + unknown + END),
    }
    assert len(members) == 2


def test_process_data_records_truncated_header(control):
    c1, c2 = control
    with pytest.raises(UnloadError):
        process_data_records(io.BytesIO(b"\x00\x10\x00"), {}, c1, c2, "IBM-1047")


def unload_image(pdse):
    parts = [
        copyr1(0x01 if pdse else 0x00),
        copyr2((0, 0, 9, 14)),
        record(dir_block([("MEMA", 0, 1, 0), ("MEMB", 0, 2, 0)], "MEMB")),
        END,
    ]
    if not pdse:
        parts.append(bytes(12))
    parts += [
        data_record(0, 0, 1, ebc("FIRST RECORD", 80) + ebc("SECOND RECORD", 80)),
        END,
        data_record(0, 0, 2, ebc("ONLY RECORD", 80)),
        END,
    ]
    return b"".join(parts)


@pytest.mark.parametrize("pdse", [False, True])
def test_process_unload_file_writes_members(tmp_path, pdse):
    params = XmitFileParams(source_recfm="FB", source_lrecl=80)
    count = process_unload_file(io.BytesIO(unload_image(pdse)), tmp_path, "txt", params, "IBM-1047")
    assert count == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == ["MEMA.txt", "MEMB.txt"]
    assert (tmp_path / "MEMA.txt").read_text() == (
        "FIRST RECORD".ljust(80) + "\n" + "SECOND RECORD".ljust(80) + "\n"
    )
    assert (tmp_path / "MEMB.txt").read_text() == "ONLY RECORD".ljust(80) + "\n"


@pytest.mark.parametrize("data", [b"", bytes(10)])
def test_process_unload_file_short_copyr1(tmp_path, data):
    with pytest.raises(UnloadError):
        process_unload_file(io.BytesIO(data), tmp_path, "txt", XmitFileParams(), "IBM-1047")


def test_process_unload_file_short_copyr2(tmp_path):
    with pytest.raises(UnloadError):
        process_unload_file(
            io.BytesIO(copyr1() + bytes(100)), tmp_path, "txt", XmitFileParams(), "IBM-1047"
        )