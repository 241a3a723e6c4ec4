"""
Generate Route

Issue a new loyalty pass and return its package.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from api.deps import get_service
from api.models.requests import GenerateRequest
from orchestrator.artifacts.manifest import PKPASS_MEDIA_TYPE
from orchestrator.service import PassService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["passes"])


def attachment_headers(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def web_service_url_for(request: Request, service: PassService) -> str:
    """Configured web service URL, else this server's /api/ base."""
    configured = service.packager.pass_config.web_service_url
    if configured:
        return configured
    return f"{str(request.base_url).rstrip('/')}/api/"


@router.post("/generate")
def generate_pass(
    body: GenerateRequest,
    request: Request,
    service: PassService = Depends(get_service),
) -> Response:
    """
    Issue a pass with a zero balance.

    The record is stored only after the package was built.
    """
    issued = service.issue_pass(
        body.name,
        web_service_url=web_service_url_for(request, service),
    )
    return Response(
        content=issued.package,
        media_type=PKPASS_MEDIA_TYPE,
        headers=attachment_headers(issued.filename),
    )
