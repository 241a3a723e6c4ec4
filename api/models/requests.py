"""
API Request Models

Pydantic models for API request validation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Request body for POST /api/generate."""

    name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Card holder name; the configured default is used when empty",
    )


class RegisterDeviceRequest(BaseModel):
    """Request body for device registration."""

    model_config = ConfigDict(populate_by_name=True)

    push_token: str = Field(
        ...,
        alias="pushToken",
        min_length=1,
        description="Push notification token of the device",
    )
