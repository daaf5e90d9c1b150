"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from enrichment_hub.commons.infrastructure.health import HealthStatus


class DocumentDBError(Exception):
    """Raised when the document database rejects or fails an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class DuplicateDocumentError(DocumentDBError):
    """Raised when an insert violates a unique index."""

    def __init__(self, collection: str, reason: str) -> None:
        self.collection = collection
        super().__init__(f"insert into {collection}", reason)


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents are plain dicts carrying their own ``id`` key; providers map
    it onto whatever primary key their backend uses. All updates are
    field-level so concurrent writers touching different fields of the same
    document never overwrite each other.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert.

        Returns:
            Document ID.

        Raises:
            DuplicateDocumentError: If a unique index is violated.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set the given fields on a document.

        Args:
            collection: Collection name.
            document_id: Document ID to update.
            updates: Fields to set. Dotted keys address nested fields.

        Returns:
            True if the document exists, False otherwise.
        """

    @abstractmethod
    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> dict[str, Any] | None:
        """Atomically update the first document matching filters.

        This is the compare-and-swap primitive: the filter expresses the
        expected current state and the update only happens if it still holds.

        Args:
            collection: Collection name.
            filters: Conditions the document must satisfy.
            updates: Fields to set.
            increments: Numeric fields to increment.

        Returns:
            The document after the update, or None if nothing matched.
        """

    @abstractmethod
    async def add_to_set(
        self,
        collection: str,
        document_id: str,
        field: str,
        value: Any,
    ) -> bool:
        """Add a value to an array field unless already present.

        Creates the document when it does not exist.

        Returns:
            True if the value was added, False if it was already there.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection name.
            fields: Index fields [(field, direction)].
            unique: Whether index should be unique.
            name: Optional index name.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
