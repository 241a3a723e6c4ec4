"""
Module 01 - Schemas & Errors
File: pass_record.py

Purpose: Persisted per-pass state kept by the state store.

The stored JSON shape is
``{name, balance, lastUpdated, authToken, devices: [{device, pushToken}]}``
keyed by serial number. Field aliases keep that wire shape while the
Python attributes stay snake_case.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


def now_millis() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class DeviceRegistration(BaseModel):
    """A device that asked to receive update pushes for a pass."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device: str = Field(..., min_length=1, description="Device library identifier")
    push_token: str = Field(default="", alias="pushToken", description="Push notification token")


class PassRecord(BaseModel):
    """State of a single issued pass."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., description="Card holder display name")
    balance: float = Field(default=0.0, description="Current balance")
    last_updated: int = Field(
        default_factory=now_millis,
        alias="lastUpdated",
        description="Last modification time, epoch milliseconds",
    )
    auth_token: str = Field(..., alias="authToken", description="Per-pass web service token")
    devices: list[DeviceRegistration] = Field(default_factory=list)

    def has_device(self, device: str) -> bool:
        return any(d.device == device for d in self.devices)

    def touch(self) -> None:
        """Bump the modification time to now."""
        self.last_updated = now_millis()

    def to_wire(self) -> dict:
        """Dump using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: dict) -> "PassRecord":
        return cls.model_validate(data)
