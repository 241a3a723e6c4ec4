"""
Module 02 - Checksum Engine
File: checksum.py

Table-driven CRC-32 as used by the ZIP container (ISO 3309 / PKZIP).

- Reflected polynomial 0xEDB88320
- Register starts at all ones; result is its one's complement
- The 256-entry lookup table is built once at import and never mutated
"""
from __future__ import annotations

CRC32_POLYNOMIAL = 0xEDB88320
_MASK32 = 0xFFFFFFFF


def _build_table(polynomial: int) -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ polynomial
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


CRC32_TABLE: tuple[int, ...] = _build_table(CRC32_POLYNOMIAL)


def crc32(data: bytes) -> int:
    """
    Compute the CRC-32 of a byte payload.

    Args:
        data: Raw bytes (any bytes-like object)

    Returns:
        Unsigned 32-bit checksum

    Example:
        >>> hex(crc32(b"123456789"))
        '0xcbf43926'
    """
    table = CRC32_TABLE
    crc = _MASK32
    for byte in memoryview(data).cast("B"):
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK32


__all__ = [
    "CRC32_POLYNOMIAL",
    "CRC32_TABLE",
    "crc32",
]
