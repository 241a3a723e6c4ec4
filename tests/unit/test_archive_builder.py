"""
Module 03 - Archive Builder Unit Tests
Tests for core/archive/builder.py

Tests:
- Record layout and offsets
- Readability by the standard zipfile reader
- Rejection of unrepresentable entry lists
- Record accounting over varied entry counts, names and payload sizes
"""
import io
import random
import zipfile
import zlib

import pytest

from core.archive import (
    CENTRAL_DIR_SIGNATURE,
    CENTRAL_HEADER,
    END_OF_CENTRAL_DIR_SIGNATURE,
    END_RECORD,
    LOCAL_FILE_HEADER_SIGNATURE,
    LOCAL_HEADER,
    ArchiveBuilder,
    ArchiveEntry,
    build_archive,
)
from core.schemas.errors import ArchiveConsistencyError


PAIRS = [
    ("pass.json", b'{"formatVersion":1}'),
    ("logo.png", b"\x89PNG\r\n\x1a\nlogo"),
    ("manifest.json", b'{"pass.json":"00"}'),
    ("signature", b"\x01\x02\x03"),
]


def _read_end_record(data: bytes):
    return END_RECORD.unpack_from(data, len(data) - END_RECORD.size)


class TestArchiveEntry:

    def test_from_payload_computes_crc(self):
        entry = ArchiveEntry.from_payload("a", b"hello")
        assert entry.crc32 == zlib.crc32(b"hello")
        assert entry.payload == b"hello"

    def test_from_payload_copies_bytearray(self):
        buf = bytearray(b"abc")
        entry = ArchiveEntry.from_payload("a", buf)
        buf[0] = 0x7A
        assert entry.payload == b"abc"


class TestLayout:

    def test_total_length(self):
        data = build_archive(PAIRS)
        names = sum(len(name) for name, _ in PAIRS)
        payloads = sum(len(payload) for _, payload in PAIRS)
        expected = (
            len(PAIRS) * LOCAL_HEADER.size + names + payloads
            + len(PAIRS) * CENTRAL_HEADER.size + names
            + END_RECORD.size
        )
        assert len(data) == expected

    def test_end_record_fields(self):
        data, layout = ArchiveBuilder().assemble(ArchiveEntry.from_payload(n, p) for n, p in PAIRS)
        sig, disk, cd_disk, on_disk, total, cd_size, cd_offset, comment = _read_end_record(data)
        assert sig == END_OF_CENTRAL_DIR_SIGNATURE
        assert (disk, cd_disk, comment) == (0, 0, 0)
        assert on_disk == total == len(PAIRS)
        assert cd_offset == layout.central_directory_offset
        assert cd_offset == layout.local_records_size
        assert cd_size == layout.central_directory_size

    def test_local_offsets_point_at_local_headers(self):
        data, layout = ArchiveBuilder().assemble(ArchiveEntry.from_payload(n, p) for n, p in PAIRS)
        offsets = layout.local_offsets
        assert offsets[0] == 0
        for (name, payload), offset in zip(PAIRS, offsets):
            fields = LOCAL_HEADER.unpack_from(data, offset)
            assert fields[0] == LOCAL_FILE_HEADER_SIGNATURE
            assert fields[3] == 0  # stored
            assert fields[6] == zlib.crc32(payload)
            assert fields[7] == fields[8] == len(payload)
            start = offset + LOCAL_HEADER.size
            assert data[start:start + fields[9]] == name.encode("ascii")
            body = start + fields[9] + fields[10]
            assert data[body:body + len(payload)] == payload

    def test_central_records_in_same_order(self):
        data, layout = ArchiveBuilder().assemble(ArchiveEntry.from_payload(n, p) for n, p in PAIRS)
        pos = layout.central_directory_offset
        for (name, payload), local_offset in zip(PAIRS, layout.local_offsets):
            fields = CENTRAL_HEADER.unpack_from(data, pos)
            assert fields[0] == CENTRAL_DIR_SIGNATURE
            assert fields[7] == zlib.crc32(payload)
            assert fields[16] == local_offset
            name_len = fields[10]
            start = pos + CENTRAL_HEADER.size
            assert data[start:start + name_len] == name.encode("ascii")
            pos = start + name_len + fields[11] + fields[12]
        assert pos == len(data) - END_RECORD.size

    def test_fixed_timestamp_makes_output_deterministic(self):
        assert build_archive(PAIRS) == build_archive(PAIRS)

    def test_empty_archive(self):
        data = build_archive([])
        assert len(data) == END_RECORD.size
        assert _read_end_record(data)[4] == 0
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == []


NAME_KINDS = ["a", "x" * 200, "fr.lproj/logo-é.png", "日本/アイコン.png", "dir/sub/file.bin"]
PAYLOAD_SIZES = [0, 1, 255, 4096, 70_000]


def _random_pairs(count: int, seed: int) -> list[tuple[str, bytes]]:
    rng = random.Random(seed)
    return [
        (f"{i}-{rng.choice(NAME_KINDS)}", rng.randbytes(rng.choice(PAYLOAD_SIZES)))
        for i in range(count)
    ]


def _every_kind() -> list[tuple[str, bytes]]:
    return [
        (f"{i}-{name}", bytes([i % 256]) * size)
        for i, (name, size) in enumerate((n, s) for n in NAME_KINDS for s in PAYLOAD_SIZES)
    ]


def _assert_structure(data: bytes, pairs: list[tuple[str, bytes]]) -> None:
    sig, _, _, on_disk, total, cd_size, cd_offset, _ = _read_end_record(data)
    assert sig == END_OF_CENTRAL_DIR_SIGNATURE
    assert on_disk == total == len(pairs)

    pos = 0
    for name, payload in pairs:
        fields = LOCAL_HEADER.unpack_from(data, pos)
        assert fields[0] == LOCAL_FILE_HEADER_SIGNATURE
        assert fields[7] == fields[8] == len(payload)
        pos += LOCAL_HEADER.size + fields[9] + fields[10] + fields[8]
    assert pos == cd_offset

    for name, payload in pairs:
        fields = CENTRAL_HEADER.unpack_from(data, pos)
        assert fields[0] == CENTRAL_DIR_SIGNATURE
        assert data[fields[16]:fields[16] + 4] == b"PK\x03\x04"
        pos += CENTRAL_HEADER.size + fields[10] + fields[11] + fields[12]
    assert pos - cd_offset == cd_size
    assert pos + END_RECORD.size == len(data)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == [name for name, _ in pairs]
        assert [zf.read(name) for name, _ in pairs] == [payload for _, payload in pairs]


class TestStructuralInvariant:

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 8, 40])
    def test_random_entry_lists(self, count):
        pairs = _random_pairs(count, seed=count)
        _assert_structure(build_archive(pairs), pairs)

    def test_every_name_and_size_kind(self):
        pairs = _every_kind()
        _assert_structure(build_archive(pairs), pairs)

    @pytest.mark.parametrize("size", PAYLOAD_SIZES)
    def test_single_entry_sizes(self, size):
        pairs = [("é/" + "n" * 30, b"\xab" * size)]
        _assert_structure(build_archive(pairs), pairs)


class TestZipfileCompatibility:

    def test_round_trip(self):
        data = build_archive(PAIRS)
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.testzip() is None
            assert zf.namelist() == [name for name, _ in PAIRS]
            for name, payload in PAIRS:
                info = zf.getinfo(name)
                assert info.compress_type == zipfile.ZIP_STORED
                assert zf.read(name) == payload

    def test_empty_payload(self):
        data = build_archive([("empty", b"")])
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.read("empty") == b""

    def test_non_ascii_name_sets_utf8_flag(self):
        data = build_archive([("fr.lproj/logo-é.png", b"x")])
        assert LOCAL_HEADER.unpack_from(data, 0)[2] & 0x0800
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == ["fr.lproj/logo-é.png"]

    def test_ascii_name_has_no_flags(self):
        data = build_archive([("logo.png", b"x")])
        assert LOCAL_HEADER.unpack_from(data, 0)[2] == 0


class TestRejections:

    def test_duplicate_name(self):
        with pytest.raises(ArchiveConsistencyError):
            build_archive([("a", b"1"), ("a", b"2")])

    def test_empty_name(self):
        with pytest.raises(ArchiveConsistencyError):
            build_archive([("", b"1")])

    def test_crc_out_of_range(self):
        with pytest.raises(ArchiveConsistencyError):
            ArchiveBuilder().build([ArchiveEntry("a", b"1", -1)])

    def test_name_too_long(self):
        with pytest.raises(ArchiveConsistencyError):
            build_archive([("n" * 0x10000, b"")])

    def test_failed_build_does_not_affect_next(self):
        builder = ArchiveBuilder()
        with pytest.raises(ArchiveConsistencyError):
            builder.build([ArchiveEntry.from_payload("a", b"1")] * 2)
        assert builder.build([ArchiveEntry.from_payload("a", b"1")]) == build_archive([("a", b"1")])
