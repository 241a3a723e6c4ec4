"""Response bodies that are JSON (packages themselves are returned as raw bytes)."""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    ok: bool = True
    service: str = "pkpass-service"
    version: str = "v1"


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Body of every non-2xx JSON response: ``{"ok": false, "error": {...}}``."""

    ok: bool = False
    error: ErrorDetail

    @classmethod
    def of(cls, code: str, message: str, details: dict[str, Any] | None = None) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message, details=details or {}))
