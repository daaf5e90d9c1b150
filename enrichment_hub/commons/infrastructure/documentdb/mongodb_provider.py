"""MongoDB implementation of document database."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)
from enrichment_hub.commons.infrastructure.health import HealthStatus


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Use the domain model 'id' as MongoDB's '_id'."""
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Restore the domain model 'id' from MongoDB's '_id'."""
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. Driver errors are translated into
    DocumentDBError so callers never depend on pymongo.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        timeout_ms: int = 5000,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
            timeout_ms: Server selection and socket timeout.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string,
            serverSelectionTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
            tz_aware=True,
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(operation, str(e)) from e
        except PyMongoError as e:
            raise DocumentDBError(operation, str(e)) from e

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        with self._translate_errors(collection):
            result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        return await self.find_one(collection, {"_id": document_id})

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        with self._translate_errors(f"find_one in {collection}"):
            doc = await self._db[collection].find_one(filters)
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        with self._translate_errors(f"update in {collection}"):
            result = await self._db[collection].update_one(
                {"_id": document_id},
                {"$set": updates},
            )
        return bool(result.matched_count > 0)

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> dict[str, Any] | None:
        mongo_filters = _to_mongo(filters)
        update_doc: dict[str, Any] = {"$set": updates}
        if increments:
            update_doc["$inc"] = increments

        with self._translate_errors(f"find_one_and_update in {collection}"):
            doc = await self._db[collection].find_one_and_update(
                mongo_filters,
                update_doc,
                return_document=ReturnDocument.AFTER,
            )
        return _from_mongo(doc) if doc else None

    async def add_to_set(
        self,
        collection: str,
        document_id: str,
        field: str,
        value: Any,
    ) -> bool:
        with self._translate_errors(f"add_to_set in {collection}"):
            result = await self._db[collection].update_one(
                {"_id": document_id},
                {"$addToSet": {field: value}},
                upsert=True,
            )
        return bool(result.modified_count > 0 or result.upserted_id is not None)

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        with self._translate_errors(f"create_index on {collection}"):
            index_name = await self._db[collection].create_index(
                fields,
                unique=unique,
                name=name,
            )
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MongoDB is healthy",
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
