"""
Module 03 - Archive Builder

Store-only ZIP container serialization for pass packages.
"""
from .builder import (
    LOCAL_FILE_HEADER_SIGNATURE,
    CENTRAL_DIR_SIGNATURE,
    END_OF_CENTRAL_DIR_SIGNATURE,
    LOCAL_HEADER,
    CENTRAL_HEADER,
    END_RECORD,
    ArchiveEntry,
    ArchiveLayout,
    ArchiveBuilder,
    build_archive,
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
