"""MongoDB source connector."""

import logging
from typing import Any

from pymongo import MongoClient

logger = logging.getLogger(__name__)

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000


class MongoDBSource:
    """Source connector for MongoDB.

    Random batches come from the ``$sample`` aggregation stage, which draws
    independently per call, so documents may repeat across batches.

    Config:
        connection_string: MongoDB connection URI (required)
        database: Database name (required)
        exact_count: Use count_documents({}) instead of the metadata
            estimate (default: false)
        server_selection_timeout_ms: Client server selection timeout (default: 5000)
    """

    def __init__(self, config: dict[str, Any]):
        """Initialize MongoDB source."""
        self.connection_string = config.get("connection_string")
        if not self.connection_string:
            raise ValueError("MongoDBSource requires 'connection_string'")

        self.db_name = config.get("database")
        if not self.db_name:
            raise ValueError("MongoDBSource requires 'database'")

        self.exact_count = bool(config.get("exact_count", False))
        self.server_selection_timeout_ms = config.get(
            "server_selection_timeout_ms", DEFAULT_SERVER_SELECTION_TIMEOUT_MS
        )

        self._client = None
        self._db = None

    def connect(self) -> None:
        """Connect to MongoDB and verify the server answers."""
        self._client = MongoClient(
            self.connection_string,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
        )
        self._client.admin.command("ping")
        self._db = self._client[self.db_name]
        logger.info(f"Connected to MongoDB: {self.db_name}")

    def list_collections(self) -> list[str]:
        """List user collections, skipping system ones."""
        db = self._require_db()
        return sorted(
            name for name in db.list_collection_names()
            if not name.startswith("system.")
        )

    def count(self, collection: str) -> int:
        db = self._require_db()
        if self.exact_count:
            return db[collection].count_documents({})
        return db[collection].estimated_document_count()

    def sample_random(self, collection: str, k: int) -> list[dict[str, Any]]:
        """Fetch up to k random documents with ``$sample``."""
        if k <= 0:
            return []
        db = self._require_db()
        cursor = db[collection].aggregate([{"$sample": {"size": k}}])
        return list(cursor)

    def close(self) -> None:
        """Close the MongoDB client."""
        if self._client is not None:
            self._client.close()
            logger.info("Disconnected from MongoDB")
        self._client = None
        self._db = None

    def _require_db(self):
        if self._db is None:
            raise RuntimeError("Not connected")
        return self._db

    def __enter__(self) -> "MongoDBSource":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
