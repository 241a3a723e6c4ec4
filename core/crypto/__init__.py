"""
Core cryptographic utilities.

Module 02 provides the checksum engine, the manifest digest and the
signature engine.
"""
from .checksum import crc32, CRC32_TABLE
from .hashing import (
    DIGEST_ALGORITHM,
    sha1,
    digest,
    digest_hex,
    sha256_hex,
)
from .signatures import (
    SIGNING_MODE_RAW,
    SIGNING_MODE_CMS,
    Signer,
    RawSigner,
    DetachedCmsSigner,
    build_signer,
    load_certificate,
    load_private_key,
    load_public_key,
    verify_raw_signature,
)

__all__ = [
    "crc32",
    "CRC32_TABLE",
    "DIGEST_ALGORITHM",
    "sha1",
    "digest",
    "digest_hex",
    "sha256_hex",
    "SIGNING_MODE_RAW",
    "SIGNING_MODE_CMS",
    "Signer",
    "RawSigner",
    "DetachedCmsSigner",
    "build_signer",
    "load_certificate",
    "load_private_key",
    "load_public_key",
    "verify_raw_signature",
]
