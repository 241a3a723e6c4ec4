"""
Module 04 - Package Artifacts

Package entries, the integrity manifest, and reading/validating
finished packages.
"""

from orchestrator.artifacts.manifest import (
    DESCRIPTOR_FILE,
    MANIFEST_FILE,
    SIGNATURE_FILE,
    REQUIRED_FILES,
    UNLISTED_FILES,
    PKPASS_MEDIA_TYPE,
    PackageEntry,
    Manifest,
    build_manifest,
    check_entry_order,
)

from orchestrator.artifacts.io import (
    PackageIOError,
    PackageMissingFileError,
    save_package,
    read_entries,
    load_package,
    load_manifest,
    validate_package,
)

__all__ = [
    # Manifest
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
    # IO
    "PackageIOError",
    "PackageMissingFileError",
    "save_package",
    "read_entries",
    "load_package",
    "load_manifest",
    "validate_package",
]
