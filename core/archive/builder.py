"""
Module 03 - Archive Builder
File: builder.py

Purpose: Serialize an ordered list of named payloads into a store-only
ZIP container.

Layout: [local records][central directory records][end record]

- Local record: 30-byte header + name + payload (method 0, verbatim)
- Central record: 46-byte header + name, pointing at its local record
- End record: 22 bytes with entry counts, directory size and offset

Header fields: version 20, method 0 (stored), DOS time 0 and DOS date
1980-01-01. General-purpose flags are 0 for ASCII names; a name with any
non-ASCII character is written as UTF-8 and sets bit 11 (0x0800), the
one departure from an all-zero flags field.

All multi-byte fields are little-endian. Entries are written in the
given order in both passes; the central offsets are only valid because
that order never changes between the passes.
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, Sequence

from core.crypto.checksum import crc32
from core.schemas.errors import ArchiveConsistencyError


logger = logging.getLogger(__name__)


# Record signatures (PKZIP APPNOTE)
LOCAL_FILE_HEADER_SIGNATURE = 0x04034B50  # PK\x03\x04
CENTRAL_DIR_SIGNATURE = 0x02014B50  # PK\x01\x02
END_OF_CENTRAL_DIR_SIGNATURE = 0x06054B50  # PK\x05\x06

VERSION_MADE_BY = 20
VERSION_NEEDED = 20
METHOD_STORE = 0
FLAG_NONE = 0x0000
FLAG_UTF8_NAME = 0x0800

# Fixed placeholder timestamp: 1980-01-01 00:00:00 in MS-DOS format
DOS_TIME = 0x0000
DOS_DATE = (0 << 9) | (1 << 5) | 1

LOCAL_HEADER = struct.Struct("<IHHHHHIIIHH")
CENTRAL_HEADER = struct.Struct("<IHHHHHHIIIHHHHHII")
END_RECORD = struct.Struct("<IHHHHIIH")

# Limits of the classic (non-ZIP64) container
MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF


@dataclass(frozen=True)
class ArchiveEntry:
    """A named payload with its precomputed CRC-32."""
    name: str
    payload: bytes
    crc32: int

    @classmethod
    def from_payload(cls, name: str, payload: bytes) -> "ArchiveEntry":
        data = bytes(payload)
        return cls(name=name, payload=data, crc32=crc32(data))


@dataclass(frozen=True)
class ArchiveLayout:
    """Byte accounting of a built archive."""
    entry_count: int
    local_offsets: tuple[int, ...]
    local_records_size: int
    central_directory_offset: int
    central_directory_size: int
    total_size: int


def _encode_name(name: str) -> tuple[bytes, int]:
    """Encode an entry name; non-ASCII names get the UTF-8 flag."""
    try:
        return name.encode("ascii"), FLAG_NONE
    except UnicodeEncodeError:
        return name.encode("utf-8"), FLAG_UTF8_NAME


def _local_record(entry: ArchiveEntry, name: bytes, flags: int) -> bytes:
    size = len(entry.payload)
    header = LOCAL_HEADER.pack(
        LOCAL_FILE_HEADER_SIGNATURE,
        VERSION_NEEDED,
        flags,
        METHOD_STORE,
        DOS_TIME,
        DOS_DATE,
        entry.crc32,
        size,  # compressed size
        size,  # uncompressed size
        len(name),
        0,  # extra field length
    )
    return header + name + entry.payload


def _central_record(entry: ArchiveEntry, name: bytes, flags: int, local_offset: int) -> bytes:
    size = len(entry.payload)
    header = CENTRAL_HEADER.pack(
        CENTRAL_DIR_SIGNATURE,
        VERSION_MADE_BY,
        VERSION_NEEDED,
        flags,
        METHOD_STORE,
        DOS_TIME,
        DOS_DATE,
        entry.crc32,
        size,
        size,
        len(name),
        0,  # extra field length
        0,  # comment length
        0,  # disk number start
        0,  # internal attributes
        0,  # external attributes
        local_offset,
    )
    return header + name


def _end_record(entry_count: int, central_size: int, central_offset: int) -> bytes:
    return END_RECORD.pack(
        END_OF_CENTRAL_DIR_SIGNATURE,
        0,  # number of this disk
        0,  # disk where central directory starts
        entry_count,  # entries on this disk
        entry_count,  # total entries
        central_size,
        central_offset,
        0,  # comment length
    )


class ArchiveBuilder:
    """
    Two-pass store-only archive writer. Stateless; one instance may be
    shared between threads.

    Usage:
        data, layout = ArchiveBuilder().assemble([ArchiveEntry.from_payload("pass.json", b"{}")])
        layout.central_directory_offset
    """

    def _check_entries(self, entries: Sequence[ArchiveEntry]) -> None:
        if len(entries) > MAX_UINT16:
            raise ArchiveConsistencyError(
                f"Too many entries for a classic archive: {len(entries)}",
                details={"entry_count": len(entries), "limit": MAX_UINT16},
            )
        seen: set[str] = set()
        for entry in entries:
            if not entry.name:
                raise ArchiveConsistencyError("Entry name must not be empty")
            if entry.name in seen:
                raise ArchiveConsistencyError(
                    f"Duplicate entry name: {entry.name}",
                    entry_name=entry.name,
                )
            seen.add(entry.name)
            if len(entry.payload) >= MAX_UINT32:
                raise ArchiveConsistencyError(
                    f"Entry too large for a classic archive: {entry.name}",
                    entry_name=entry.name,
                    details={"size": len(entry.payload)},
                )
            if not 0 <= entry.crc32 <= MAX_UINT32:
                raise ArchiveConsistencyError(
                    f"CRC-32 out of range for {entry.name}",
                    entry_name=entry.name,
                )

    def build(self, entries: Iterable[ArchiveEntry]) -> bytes:
        """Serialize entries into archive bytes."""
        data, _ = self.assemble(entries)
        return data

    def assemble(self, entries: Iterable[ArchiveEntry]) -> tuple[bytes, ArchiveLayout]:
        """
        Serialize entries and return the bytes with the layout they follow.

        Raises:
            ArchiveConsistencyError: If the entries cannot be represented
                or the assembled layout violates an offset invariant.
        """
        ordered = list(entries)
        self._check_entries(ordered)

        encoded = []
        for entry in ordered:
            name, flags = _encode_name(entry.name)
            if len(name) > MAX_UINT16:
                raise ArchiveConsistencyError(
                    f"Entry name too long: {entry.name[:32]}...",
                    entry_name=entry.name,
                )
            encoded.append((entry, name, flags))

        # Pass 1: local records, remembering where each one starts
        local_records: list[bytes] = []
        local_offsets: list[int] = []
        offset = 0
        for entry, name, flags in encoded:
            record = _local_record(entry, name, flags)
            local_offsets.append(offset)
            local_records.append(record)
            offset += len(record)
        central_offset = offset

        # Pass 2: central directory, same order
        central_records = [
            _central_record(entry, name, flags, local_offset)
            for (entry, name, flags), local_offset in zip(encoded, local_offsets)
        ]
        central_size = sum(len(r) for r in central_records)

        if central_offset > MAX_UINT32 or central_size > MAX_UINT32:
            raise ArchiveConsistencyError(
                "Archive exceeds the classic container size limit",
                details={"central_offset": central_offset, "central_size": central_size},
            )

        end = _end_record(len(encoded), central_size, central_offset)
        data = b"".join(local_records) + b"".join(central_records) + end

        layout = ArchiveLayout(
            entry_count=len(encoded),
            local_offsets=tuple(local_offsets),
            local_records_size=sum(len(r) for r in local_records),
            central_directory_offset=central_offset,
            central_directory_size=central_size,
            total_size=len(data),
        )
        self._verify_layout(layout)

        logger.debug(
            f"Archive built: {layout.entry_count} entries, {layout.total_size} bytes, "
            f"central directory at {layout.central_directory_offset}"
        )
        return data, layout

    @staticmethod
    def _verify_layout(layout: ArchiveLayout) -> None:
        expected_total = (
            layout.central_directory_offset
            + layout.central_directory_size
            + END_RECORD.size
        )
        if layout.local_records_size != layout.central_directory_offset:
            raise ArchiveConsistencyError(
                "Central directory offset does not equal local records size",
                details={
                    "local_records_size": layout.local_records_size,
                    "central_directory_offset": layout.central_directory_offset,
                },
            )
        if layout.total_size != expected_total:
            raise ArchiveConsistencyError(
                "Archive length does not match its records",
                details={"total_size": layout.total_size, "expected": expected_total},
            )
        if len(layout.local_offsets) != layout.entry_count:
            raise ArchiveConsistencyError("Local offset count does not match entry count")
        if any(b <= a for a, b in zip(layout.local_offsets, layout.local_offsets[1:])):
            raise ArchiveConsistencyError("Local record offsets are not strictly increasing")


def build_archive(entries: Iterable[tuple[str, bytes]]) -> bytes:
    """Build an archive from ordered (name, payload) pairs."""
    return ArchiveBuilder().build(
        ArchiveEntry.from_payload(name, payload) for name, payload in entries
    )


__all__ = [
    "LOCAL_FILE_HEADER_SIGNATURE",
    "CENTRAL_DIR_SIGNATURE",
    "END_OF_CENTRAL_DIR_SIGNATURE",
    "LOCAL_HEADER",
    "CENTRAL_HEADER",
    "END_RECORD",
    "ArchiveEntry",
    "ArchiveLayout",
    "ArchiveBuilder",
    "build_archive",
]
