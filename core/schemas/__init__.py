"""
Module 01 - Schemas & Serialization
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Serialization API
from .canonical import (
    COMPACT_JSON_SEPARATORS,
    canonicalize_value,
    dumps_compact,
    dumps_ordered,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    ArchiveConsistencyError,
    AssetUnavailableError,
    AuthenticationError,
    CanonicalizationException,
    ErrorCodes,
    GenerationError,
    KeyMaterialInvalidError,
    PassKitError,
    PassKitException,
    PassNotFoundError,
    SigningFailureError,
    StateStoreError,
)

# Verification models
from .verification import (
    CheckResult,
    CheckSeverity,
    VerificationResult,
)

# Pass models
from .descriptor import (
    DESCRIPTOR_FORMAT_VERSION,
    Barcode,
    PassDescriptor,
    PassField,
    StoreCard,
)
from .pass_record import (
    DeviceRegistration,
    PassRecord,
    now_millis,
)

__all__ = [
    # Serialization
    "COMPACT_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_compact",
    "dumps_ordered",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "ErrorCodes",
    "PassKitError",
    "PassKitException",
    "CanonicalizationException",
    "AssetUnavailableError",
    "KeyMaterialInvalidError",
    "SigningFailureError",
    "ArchiveConsistencyError",
    "StateStoreError",
    "PassNotFoundError",
    "AuthenticationError",
    "GenerationError",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "VerificationResult",
    # Pass models
    "DESCRIPTOR_FORMAT_VERSION",
    "Barcode",
    "PassField",
    "StoreCard",
    "PassDescriptor",
    "DeviceRegistration",
    "PassRecord",
    "now_millis",
]
