"""
Module 04 - Package Artifacts
File: io.py

Purpose: Save, load and validate finished .pkpass packages.

Packages are read back with the standard ``zipfile`` reader, which also
re-checks every entry's CRC-32.
"""

from __future__ import annotations

import io
import os
import tempfile
import zipfile
from pathlib import Path

from core.crypto.hashing import digest_hex
from core.crypto.signatures import is_cms_signature, verify_raw_signature
from core.schemas.errors import CanonicalizationException
from core.schemas.verification import CheckResult, VerificationResult

from orchestrator.artifacts.manifest import (
    MANIFEST_FILE,
    REQUIRED_FILES,
    SIGNATURE_FILE,
    UNLISTED_FILES,
    Manifest,
    PackageEntry,
)


class PackageIOError(Exception):
    """Error during package IO operations."""
    pass


class PackageMissingFileError(PackageIOError):
    """Required entry missing from a package."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required entry missing: {name}")


def save_package(data: bytes, out_path: str | Path) -> Path:
    """
    Write package bytes to disk.

    The file is written to a sibling temp file first and moved into
    place, so readers never see a partial package.
    """
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


def read_entries(data: bytes) -> list[PackageEntry]:
    """
    Read every entry of a package, in archive order.

    Raises:
        PackageIOError: If the bytes are not a readable archive or an
            entry fails its CRC check.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data), "r") as zf:
            return [PackageEntry(info.filename, zf.read(info)) for info in zf.infolist()]
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise PackageIOError(f"Not a readable package: {e}") from e


def load_package(path: str | Path) -> list[PackageEntry]:
    """Load the entries of a package file."""
    path = Path(path)
    if not path.is_file():
        raise PackageIOError(f"Not a file: {path}")
    return read_entries(path.read_bytes())


def load_manifest(entries: list[PackageEntry]) -> Manifest:
    """Find and parse manifest.json among package entries."""
    for entry in entries:
        if entry.name == MANIFEST_FILE:
            try:
                return Manifest.from_bytes(entry.payload)
            except CanonicalizationException as e:
                raise PackageIOError(e.message) from e
    raise PackageMissingFileError(MANIFEST_FILE)


def validate_package(data: bytes, *, public_key=None) -> VerificationResult:
    """
    Validate a package against its own manifest.

    Checks that the archive reads cleanly, the required entries exist,
    every manifest digest matches its payload and no payload is left
    out of the manifest. With ``public_key`` a raw signature is also
    verified over the packaged manifest bytes; a CMS SignedData signature
    is reported as unchecked rather than failed.

    Returns VerificationResult with a check for each step.
    """
    checks: list[CheckResult] = []

    try:
        entries = read_entries(data)
    except PackageIOError as e:
        return VerificationResult(
            ok=False,
            checks=[CheckResult.failed("archive_readable", str(e))],
        )
    checks.append(CheckResult.passed(
        "archive_readable",
        f"Archive readable ({len(entries)} entries)",
    ))

    by_name = {entry.name: entry for entry in entries}
    missing = [name for name in REQUIRED_FILES if name not in by_name]
    if missing:
        checks.append(CheckResult.failed(
            "required_files",
            f"Missing required entries: {missing}",
        ))
        return VerificationResult.from_checks(checks)
    checks.append(CheckResult.passed("required_files", "All required entries present"))

    try:
        manifest = load_manifest(entries)
    except PackageIOError as e:
        checks.append(CheckResult.failed("manifest_load", str(e)))
        return VerificationResult.from_checks(checks)

    for name, expected in manifest:
        entry = by_name.get(name)
        if entry is None:
            checks.append(CheckResult.failed(f"digest_{name}", f"{name} listed but not packaged"))
            continue
        actual = digest_hex(entry.payload)
        if actual == expected:
            checks.append(CheckResult.passed(f"digest_{name}", f"{name} digest valid"))
        else:
            checks.append(CheckResult.failed(
                f"digest_{name}",
                f"{name} digest mismatch",
                {"expected": expected, "actual": actual},
            ))

    listed = set(manifest.names())
    unlisted = [e.name for e in entries if e.name not in listed and e.name not in UNLISTED_FILES]
    if unlisted:
        checks.append(CheckResult.failed(
            "manifest_complete",
            f"Entries missing from manifest: {unlisted}",
        ))
    else:
        checks.append(CheckResult.passed("manifest_complete", "Every entry is listed"))

    signature = by_name[SIGNATURE_FILE].payload
    if public_key is not None and is_cms_signature(signature):
        checks.append(CheckResult.warning("signature", "CMS signature not checked (raw keys only)"))
    elif public_key is not None:
        if verify_raw_signature(public_key, signature, by_name[MANIFEST_FILE].payload):
            checks.append(CheckResult.passed("signature", "Signature valid"))
        else:
            checks.append(CheckResult.failed("signature", "Signature does not verify"))
    else:
        checks.append(CheckResult.warning("signature", "Signature not checked (no public key)"))

    return VerificationResult.from_checks(checks)


__all__ = [
    "PackageIOError",
    "PackageMissingFileError",
    "save_package",
    "read_entries",
    "load_package",
    "load_manifest",
    "validate_package",
]
