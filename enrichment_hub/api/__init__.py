"""API layer - REST endpoints."""

from enrichment_hub.api.main import app, create_app

__all__ = [
    "app",
    "create_app",
]
