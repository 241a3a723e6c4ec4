"""API request and response models."""

from api.models.requests import GenerateRequest, RegisterDeviceRequest
from api.models.responses import (
    HealthResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "GenerateRequest",
    "RegisterDeviceRequest",
    "HealthResponse",
    "ErrorDetail",
    "ErrorResponse",
]
