"""Infrastructure providers shared across the application."""

from enrichment_hub.commons.infrastructure.health import HealthStatus

__all__ = ["HealthStatus"]
