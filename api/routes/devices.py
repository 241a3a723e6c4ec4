"""
Device Registration Route

Devices register for update pushes of a pass.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from api.deps import get_pass_token, get_service
from api.models.requests import RegisterDeviceRequest
from orchestrator.service import PassService


router = APIRouter(prefix="/api/v1", tags=["devices"])


@router.post("/devices/{device}/registrations/{pass_type}/{serial}")
def register_device(
    device: str,
    pass_type: str,
    serial: str,
    body: RegisterDeviceRequest,
    token: Optional[str] = Depends(get_pass_token),
    service: PassService = Depends(get_service),
) -> Response:
    """201 when newly registered, 200 when the device already was."""
    created = service.register_device(device, pass_type, serial, body.push_token, token)
    return Response(status_code=201 if created else 200)
