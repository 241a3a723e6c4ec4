"""
HTTP Client

Asset downloads for the ``http`` asset source go through here. The client
owns one lazily created requests session and converts transport failures
into HttpError so callers only deal with one exception type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests


logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Raised when a request cannot be completed."""


@dataclass
class HttpResponse:
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status_code // 100 == 2

    @classmethod
    def from_requests(cls, response: requests.Response) -> "HttpResponse":
        return cls(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
            url=str(response.url),
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )


class HttpClient:
    """
    Session-backed fetcher with a default timeout and no retries.

        with HttpClient(timeout=10.0) as client:
            logo = client.get("https://cdn.example.com/logo.png").content
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        default_headers: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)
        return self._session

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        merged = {**self.default_headers, **(headers or {})}
        try:
            raw = self.session.request(
                method=method,
                url=url,
                headers=merged,
                params=params,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            raise HttpError(f"{method} {url} failed: {e}") from e

        response = HttpResponse.from_requests(raw)
        logger.debug(f"{method} {url} -> {response.status_code} ({len(response.content)} bytes)")
        return response

    def get(self, url: str, **kwargs: Any) -> HttpResponse:
        return self.request("GET", url, **kwargs)

    def close(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
