"""
Module 01 - Schemas & Errors
File: errors.py

Error codes, the serializable PassKitError model, and the exception
hierarchy raised by the packaging pipeline and the pass service.

Every exception has a fixed ``code``. Exceptions that are about one named
thing (an asset, an archive entry, a store key) accept it as a keyword and
copy it into ``details`` so API and CLI output can show it.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class ErrorCodes:
    """Machine-readable codes. Values are part of the API contract."""

    # collaborators
    ASSET_UNAVAILABLE = "ASSET_UNAVAILABLE"
    STATE_STORE_ERROR = "STATE_STORE_ERROR"
    PASS_NOT_FOUND = "PASS_NOT_FOUND"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"

    # keys and signatures
    KEY_MATERIAL_INVALID = "KEY_MATERIAL_INVALID"
    SIGNING_FAILURE = "SIGNING_FAILURE"

    # serialization and container
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    ARCHIVE_CONSISTENCY_ERROR = "ARCHIVE_CONSISTENCY_ERROR"

    GENERATION_FAILED = "GENERATION_FAILED"


class PassKitError(BaseModel):
    """Serializable form of a PassKitException, used in responses."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    code: str = Field(..., examples=[ErrorCodes.ASSET_UNAVAILABLE])
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False

    def to_exception(self) -> "PassKitException":
        return PassKitException(self.message, code=self.code, details=dict(self.details), retryable=self.retryable)


class PassKitException(Exception):
    """Root of every error this package raises on purpose."""

    def __init__(
        self,
        message: str,
        code: str = "PASSKIT_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = dict(details or {})
        self.retryable = retryable

    def to_error_model(self) -> PassKitError:
        return PassKitError(code=self.code, message=self.message, details=self.details, retryable=self.retryable)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class _CodedError(PassKitException):
    """An exception with a fixed code and an optional subject in ``details``."""

    error_code: ClassVar[str]
    subject_key: ClassVar[str | None] = None

    def __init__(self, message: str, details: dict[str, Any] | None = None, subject: str | None = None) -> None:
        merged = dict(details or {})
        if subject and self.subject_key:
            merged[self.subject_key] = subject
        super().__init__(message, code=self.error_code, details=merged)


class CanonicalizationException(_CodedError):
    """A value cannot be written as deterministic JSON."""

    error_code = ErrorCodes.CANONICALIZATION_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class AssetUnavailableError(_CodedError):
    """An asset is missing from its source or could not be fetched."""

    error_code = ErrorCodes.ASSET_UNAVAILABLE
    subject_key = "asset"

    def __init__(self, message: str, asset_name: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, subject=asset_name)
        self.asset_name = asset_name


class KeyMaterialInvalidError(_CodedError):
    """A key or certificate is unreadable, or of the wrong kind."""

    error_code = ErrorCodes.KEY_MATERIAL_INVALID

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class SigningFailureError(_CodedError):
    error_code = ErrorCodes.SIGNING_FAILURE

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class ArchiveConsistencyError(_CodedError):
    """
    The ZIP container would break one of its layout rules.

    Correct inputs never trigger this; treat it as fatal.
    """

    error_code = ErrorCodes.ARCHIVE_CONSISTENCY_ERROR
    subject_key = "entry"

    def __init__(self, message: str, entry_name: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, subject=entry_name)


class StateStoreError(_CodedError):
    error_code = ErrorCodes.STATE_STORE_ERROR
    subject_key = "key"

    def __init__(self, message: str, key: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, subject=key)


class PassNotFoundError(_CodedError):
    error_code = ErrorCodes.PASS_NOT_FOUND
    subject_key = "serial"

    def __init__(self, serial: str) -> None:
        super().__init__(f"No pass with serial {serial!r}", subject=serial)
        self.serial = serial


class AuthenticationError(_CodedError):
    """Missing, malformed or mismatched ``ApplePass`` token."""

    error_code = ErrorCodes.AUTHENTICATION_FAILED

    def __init__(self, message: str = "Invalid or missing authentication token") -> None:
        super().__init__(message)


class GenerationError(PassKitException):
    """
    Package generation stopped at ``stage``.

    ``cause`` is the first exception raised by that stage and is also
    chained as ``__cause__``. When it is one of ours, its code and details
    are lifted into this error's details.
    """

    def __init__(self, message: str, stage: str | None = None, cause: BaseException | None = None) -> None:
        details: dict[str, Any] = {"stage": stage} if stage else {}
        if isinstance(cause, PassKitException):
            details["cause_code"] = cause.code
            for key, value in cause.details.items():
                details.setdefault(key, value)
        elif cause is not None:
            details["cause_type"] = type(cause).__name__
        super().__init__(message, code=ErrorCodes.GENERATION_FAILED, details=details)
        self.stage = stage
        self.cause = cause

    @property
    def cause_code(self) -> str | None:
        return self.cause.code if isinstance(self.cause, PassKitException) else None
