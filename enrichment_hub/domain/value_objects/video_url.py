"""Video source URL value object."""

from __future__ import annotations

from typing import Annotated
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from enrichment_hub.domain.exceptions import InvalidVideoUrlException

_ALLOWED_SCHEMES = frozenset({"http", "https"})
_MAX_URL_LENGTH = 2048


class VideoUrl(BaseModel):
    """Value object representing a validated video source URL.

    The URL is the registry key. Validation is shape-only: any http(s) URL
    with a host is accepted; the metadata provider decides whether the host
    is supported.

    Examples:
        >>> VideoUrl.parse("  https://youtu.be/dQw4w9WgXcQ ").value
        'https://youtu.be/dQw4w9WgXcQ'
    """

    value: Annotated[str, Field(min_length=1, max_length=_MAX_URL_LENGTH)]

    @classmethod
    def parse(cls, url: str | None) -> VideoUrl:
        """Validate a raw URL string.

        Args:
            url: Raw URL as submitted by the client.

        Returns:
            A VideoUrl instance with surrounding whitespace stripped.

        Raises:
            InvalidVideoUrlException: If the URL is empty or malformed.
        """
        if not url or not isinstance(url, str) or not url.strip():
            raise InvalidVideoUrlException(str(url), "URL cannot be empty")

        candidate = url.strip()
        if len(candidate) > _MAX_URL_LENGTH:
            raise InvalidVideoUrlException(candidate[:64], "URL is too long")
        if any(ch.isspace() for ch in candidate):
            raise InvalidVideoUrlException(candidate, "URL contains whitespace")

        parts = urlsplit(candidate)
        if parts.scheme.lower() not in _ALLOWED_SCHEMES:
            raise InvalidVideoUrlException(candidate, "Scheme must be http or https")
        if not parts.netloc or not parts.hostname:
            raise InvalidVideoUrlException(candidate, "URL has no host")

        return cls(value=candidate)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VideoUrl):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return False
