"""API route handlers."""

from api.routes import health, generate, devices, passes

__all__ = ["health", "generate", "devices", "passes"]
