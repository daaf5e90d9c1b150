"""Document database abstractions and implementations."""

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)
from enrichment_hub.commons.infrastructure.documentdb.mongodb_provider import (
    MongoDBDocumentDB,
)

__all__ = [
    # Base classes
    "DocumentDBBase",
    # Errors
    "DocumentDBError",
    "DuplicateDocumentError",
    # Implementations
    "MongoDBDocumentDB",
]
