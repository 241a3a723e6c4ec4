"""
API Dependencies

Dependency injection for the API.
Provides the shared PassService and request header parsing.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional

from fastapi import Header

from core.config.runtime import load_config
from orchestrator.pipeline import create_packager
from orchestrator.service import PassService
from orchestrator.store import create_state_store

logger = logging.getLogger(__name__)

AUTH_SCHEME = "ApplePass"

_service: Optional[PassService] = None
_service_lock = threading.Lock()


def get_service() -> PassService:
    """
    Shared PassService built from runtime configuration on first use.

    Config comes from ./pkpass.json, ./.pkpass.json or
    ~/.config/pkpass/config.json, with PKPASS_* environment variables
    always overriding file values.

    Raises:
        KeyMaterialInvalidError: If the signing credentials cannot be loaded.
    """
    global _service
    if _service is not None:
        return _service
    with _service_lock:
        if _service is None:
            config = load_config()
            _service = PassService(create_packager(config), create_state_store(config.store))
            logger.info(
                f"Pass service ready (signing={config.signing.mode}, "
                f"assets={config.assets.source}, store={config.store.backend})"
            )
        return _service


def set_service(service: Optional[PassService]) -> None:
    """Replace (or with None, reset) the shared service."""
    global _service
    with _service_lock:
        _service = service


def get_pass_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Extract the token from an ``Authorization: ApplePass <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != AUTH_SCHEME or not token.strip():
        return None
    return token.strip()


def get_if_modified_since(
    if_modified_since: Optional[str] = Header(default=None),
) -> Optional[datetime]:
    """Parse an HTTP-date header; unparseable values are ignored."""
    if not if_modified_since:
        return None
    try:
        return parsedate_to_datetime(if_modified_since)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparseable If-Modified-Since: {if_modified_since!r}")
        return None
