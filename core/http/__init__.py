"""
HTTP Client Module

Session-backed HTTP client for asset retrieval.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
