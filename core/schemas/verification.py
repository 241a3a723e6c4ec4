"""
Module 01 - Schemas & Errors
File: verification.py

Outcome records produced when an existing .pkpass is inspected.

A package is inspected in a fixed order (archive, required entries,
manifest, per-entry digests, signature) and every step leaves one
CheckResult behind. The aggregate VerificationResult is what the CLI
prints and what the tests assert on.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import PassKitError


CheckSeverity = Literal["info", "warn", "error"]


def _check(check_id: str, ok: bool, severity: CheckSeverity, message: str, details) -> "CheckResult":
    return CheckResult(
        check_id=check_id,
        ok=ok,
        severity=severity,
        message=message,
        details=dict(details or {}),
    )


class CheckResult(BaseModel):
    """One inspection step. A warning still counts as ok."""

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(..., min_length=1)
    ok: bool
    severity: CheckSeverity
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity == "error" and not self.ok

    @property
    def is_warning(self) -> bool:
        return self.severity == "warn"

    @classmethod
    def passed(cls, check_id: str, message: str = "ok", details: dict[str, Any] | None = None) -> "CheckResult":
        return _check(check_id, True, "info", message, details)

    @classmethod
    def warning(cls, check_id: str, message: str, details: dict[str, Any] | None = None) -> "CheckResult":
        return _check(check_id, True, "warn", message, details)

    @classmethod
    def failed(cls, check_id: str, message: str, details: dict[str, Any] | None = None) -> "CheckResult":
        return _check(check_id, False, "error", message, details)


class VerificationResult(BaseModel):
    """Every check run against one package, plus the overall verdict."""

    model_config = ConfigDict(extra="forbid")

    ok: bool
    checks: list[CheckResult] = Field(default_factory=list)
    # Set when inspection stopped on an exception instead of a failed check.
    error: PassKitError | None = None

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "VerificationResult":
        return cls(ok=all(c.ok for c in checks), checks=list(checks))

    @classmethod
    def from_error(cls, error: PassKitError) -> "VerificationResult":
        return cls(ok=False, error=error)

    @property
    def error_count(self) -> int:
        return len([c for c in self.checks if c.is_error])

    @property
    def passed_count(self) -> int:
        return len([c for c in self.checks if c.ok])

    def get_failed_checks(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.ok]

    def find(self, check_id: str) -> CheckResult | None:
        """Return the check recorded under ``check_id``, if any."""
        for check in self.checks:
            if check.check_id == check_id:
                return check
        return None

    def add_check(self, check: CheckResult) -> None:
        self.checks.append(check)
        self.ok = self.ok and check.ok
