"""
Latest Pass Route

Serve the current package of a pass, honouring If-Modified-Since.
"""

from __future__ import annotations

from datetime import datetime
from email.utils import format_datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from api.deps import get_if_modified_since, get_pass_token, get_service
from api.routes.generate import attachment_headers, web_service_url_for
from orchestrator.artifacts.manifest import PKPASS_MEDIA_TYPE
from orchestrator.service import DEFAULT_FILENAME, PassService


router = APIRouter(prefix="/api/v1", tags=["passes"])


@router.get("/passes/{pass_type}/{serial}")
def latest_pass(
    pass_type: str,
    serial: str,
    request: Request,
    token: Optional[str] = Depends(get_pass_token),
    if_modified_since: Optional[datetime] = Depends(get_if_modified_since),
    service: PassService = Depends(get_service),
) -> Response:
    latest = service.latest_pass(
        pass_type,
        serial,
        token,
        if_modified_since,
        web_service_url=web_service_url_for(request, service),
    )
    if latest is None:
        return Response(status_code=304)

    headers = attachment_headers(DEFAULT_FILENAME)
    headers["Last-Modified"] = format_datetime(latest.last_modified, usegmt=True)
    return Response(
        content=latest.package,
        media_type=PKPASS_MEDIA_TYPE,
        headers=headers,
    )
