"""API route handlers."""

from enrichment_hub.api.openapi.routes import callbacks, health, retrieval, videos

__all__ = [
    "callbacks",
    "health",
    "retrieval",
    "videos",
]
