"""
Module 02 - Digest Engine
File: hashing.py

Content digests for package entries.

The pass format fixes the manifest digest to SHA-1; manifest values are
lowercase hex without any prefix.

Determinism Notes:
- Always hash raw bytes exactly as packaged
- No normalisation of payloads before hashing
"""
from __future__ import annotations

import hashlib

DIGEST_ALGORITHM = "sha1"
DIGEST_SIZE = 20


def sha1(data: bytes) -> bytes:
    """
    Compute SHA-1 hash of raw bytes.

    Returns:
        20-byte SHA-1 digest

    Example:
        >>> sha1(b"abc").hex()
        'a9993e364706816aba3e25717850c26c9cd0d89d'
    """
    return hashlib.sha1(data).digest()


def digest(data: bytes) -> bytes:
    """Digest of a package payload with the manifest algorithm."""
    return sha1(data)


def digest_hex(data: bytes) -> str:
    """Lowercase hex digest, as written into manifest.json."""
    return digest(data).hex()


def sha256_hex(data: bytes) -> str:
    """SHA-256 hex digest, used for log fingerprints of whole packages."""
    return hashlib.sha256(data).hexdigest()


__all__ = [
    "DIGEST_ALGORITHM",
    "DIGEST_SIZE",
    "sha1",
    "digest",
    "digest_hex",
    "sha256_hex",
]
