"""
Module 05 - Asset Sources

Collaborators that hand the packager the binary assets (logo.png,
icon.png, ...) that go into every pass.

Every source raises AssetUnavailableError for a missing or unreadable
asset; none of them retries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Protocol, TYPE_CHECKING, runtime_checkable
from urllib.parse import urljoin

from core.http.client import HttpClient, HttpError
from core.schemas.errors import AssetUnavailableError

if TYPE_CHECKING:
    from core.config.runtime import AssetConfig, HttpConfig


logger = logging.getLogger(__name__)


@runtime_checkable
class AssetSource(Protocol):
    """Resolves an asset name to its bytes."""

    def fetch(self, name: str) -> bytes:
        ...


class InMemoryAssetSource:
    """Assets held in a dict; used by tests and embedded callers."""

    def __init__(self, assets: Optional[Mapping[str, bytes]] = None) -> None:
        self._assets = dict(assets or {})

    def add(self, name: str, data: bytes) -> None:
        self._assets[name] = bytes(data)

    def fetch(self, name: str) -> bytes:
        try:
            return self._assets[name]
        except KeyError:
            raise AssetUnavailableError(f"Asset not found: {name}", asset_name=name) from None


class DirectoryAssetSource:
    """Assets read from files under a base directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _resolve(self, name: str) -> Path:
        base = self.directory.resolve()
        path = (base / name).resolve()
        if base != path and base not in path.parents:
            raise AssetUnavailableError(
                f"Asset path escapes asset directory: {name}",
                asset_name=name,
            )
        return path

    def fetch(self, name: str) -> bytes:
        path = self._resolve(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise AssetUnavailableError(
                f"Asset not found: {name}",
                asset_name=name,
                details={"path": str(path)},
            ) from None
        except OSError as e:
            raise AssetUnavailableError(
                f"Cannot read asset {name}: {e}",
                asset_name=name,
                details={"path": str(path)},
            ) from e


class HttpAssetSource:
    """Assets downloaded from ``base_url + name``."""

    def __init__(self, base_url: str, *, client: Optional[HttpClient] = None) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.client = client or HttpClient()

    def fetch(self, name: str) -> bytes:
        url = urljoin(self.base_url, name)
        try:
            response = self.client.get(url)
        except HttpError as e:
            raise AssetUnavailableError(
                f"Cannot download asset {name}: {e}",
                asset_name=name,
                details={"url": url},
            ) from e
        if not response.ok:
            raise AssetUnavailableError(
                f"Asset download failed with HTTP {response.status_code}: {name}",
                asset_name=name,
                details={"url": url, "status_code": response.status_code},
            )
        logger.debug(f"Fetched asset {name} ({len(response.content)} bytes)")
        return response.content


def create_asset_source(
    config: "AssetConfig",
    http: Optional["HttpConfig"] = None,
) -> AssetSource:
    """Build the asset source named by ``config.source``."""
    if config.source == "directory":
        return DirectoryAssetSource(config.directory)
    if config.source == "http":
        if not config.base_url:
            raise ValueError("assets.base_url is required for the http asset source")
        client = HttpClient(
            timeout=http.timeout if http else 30.0,
            default_headers={"User-Agent": http.user_agent} if http else None,
        )
        return HttpAssetSource(config.base_url, client=client)
    raise ValueError(f"Unknown asset source: {config.source}")


__all__ = [
    "AssetSource",
    "InMemoryAssetSource",
    "DirectoryAssetSource",
    "HttpAssetSource",
    "create_asset_source",
]
