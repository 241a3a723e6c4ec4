"""
Module 04 - Package Artifacts
File: manifest.py

Purpose: Package entries and the integrity manifest.

The manifest maps every entry that precedes it to the lowercase hex
SHA-1 of its payload. Its members appear in entry insertion order; it
never lists itself or the signature.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from core.crypto.hashing import digest_hex
from core.schemas.canonical import dumps_ordered, loads_canonical
from core.schemas.errors import ArchiveConsistencyError, CanonicalizationException

DESCRIPTOR_FILE = "pass.json"
MANIFEST_FILE = "manifest.json"
SIGNATURE_FILE = "signature"

REQUIRED_FILES = (DESCRIPTOR_FILE, MANIFEST_FILE, SIGNATURE_FILE)

# Entries that are produced from the manifest and so cannot be listed in it
UNLISTED_FILES = frozenset({MANIFEST_FILE, SIGNATURE_FILE})

PKPASS_MEDIA_TYPE = "application/vnd.apple.pkpass"


@dataclass(frozen=True)
class PackageEntry:
    """A named payload destined for the archive."""
    name: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass
class Manifest:
    """Ordered (name, digest) pairs."""
    items: list[tuple[str, str]] = field(default_factory=list)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def names(self) -> list[str]:
        return [name for name, _ in self.items]

    def get(self, name: str) -> str | None:
        for entry_name, value in self.items:
            if entry_name == name:
                return value
        return None

    def add(self, entry: PackageEntry) -> None:
        """Append the digest of an entry."""
        if entry.name in UNLISTED_FILES:
            raise ArchiveConsistencyError(
                f"{entry.name} cannot be listed in the manifest",
                entry_name=entry.name,
            )
        if self.get(entry.name) is not None:
            raise ArchiveConsistencyError(
                f"Duplicate entry name: {entry.name}",
                entry_name=entry.name,
            )
        self.items.append((entry.name, digest_hex(entry.payload)))

    def to_json(self) -> str:
        return dumps_ordered(self.items)

    def to_bytes(self) -> bytes:
        """The manifest.json payload."""
        return self.to_json().encode("utf-8")

    def to_entry(self) -> PackageEntry:
        return PackageEntry(MANIFEST_FILE, self.to_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "Manifest":
        """
        Parse manifest.json bytes.

        Raises:
            CanonicalizationException: If the payload is not a JSON object
                of string digests.
        """
        try:
            parsed = loads_canonical(data)
        except ValueError as e:
            raise CanonicalizationException(
                message=f"Manifest is not valid JSON: {e}",
            ) from e
        if not isinstance(parsed, dict):
            raise CanonicalizationException(
                message="Manifest must be a JSON object",
                details={"type": type(parsed).__name__},
            )
        items = []
        for name, value in parsed.items():
            if not isinstance(value, str):
                raise CanonicalizationException(
                    message=f"Manifest digest for {name} is not a string",
                    details={"entry": name},
                )
            items.append((name, value))
        return cls(items=items)


def build_manifest(entries: Iterable[PackageEntry]) -> Manifest:
    """
    Digest each entry in order.

    Raises:
        ArchiveConsistencyError: On duplicate names or if the manifest
            or signature entry is passed in.
    """
    manifest = Manifest()
    for entry in entries:
        manifest.add(entry)
    return manifest


def check_entry_order(entries: Sequence[PackageEntry]) -> None:
    """
    Check the fixed package layout: pass.json first, manifest.json and
    signature last, in that order.

    Raises:
        ArchiveConsistencyError: If the layout is violated.
    """
    names = [e.name for e in entries]
    if len(names) < 3:
        raise ArchiveConsistencyError(
            "Package needs at least pass.json, manifest.json and signature",
            details={"entries": names},
        )
    if names[0] != DESCRIPTOR_FILE or names[-2:] != [MANIFEST_FILE, SIGNATURE_FILE]:
        raise ArchiveConsistencyError(
            "Package entries are out of order",
            details={"entries": names},
        )


__all__ = [
    "DESCRIPTOR_FILE",
    "MANIFEST_FILE",
    "SIGNATURE_FILE",
    "REQUIRED_FILES",
    "UNLISTED_FILES",
    "PKPASS_MEDIA_TYPE",
    "PackageEntry",
    "Manifest",
    "build_manifest",
    "check_entry_order",
]
