"""
MongoDB Connection Module (v1.1.0)
Persistent storage handle, constructed once at startup and passed to
every repository.
"""
import logging
from typing import Optional

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Store unavailable or a query failed."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class Database:
    """Thin wrapper around a MongoDB database."""

    def __init__(self, uri: str, db_name: str, client: Optional[MongoClient] = None):
        self.uri = uri
        self.db_name = db_name
        self._client = client or MongoClient(uri, serverSelectionTimeoutMS=5000)
        self._db = self._client[db_name]

    def connect(self) -> bool:
        """
        Check connectivity and create indexes.

        Returns:
            True if connected, False otherwise
        """
        try:
            logger.info(f"Connecting to MongoDB: {self.uri[:30]}...")
            self._client.admin.command("ping")
            self.ensure_indexes()
            logger.info(f"✓ Connected to MongoDB database: {self.db_name}")
            return True

        except PyMongoError as e:
            logger.warning(f"MongoDB connection failed: {e}")
            return False

    def ensure_indexes(self):
        """Create the unique and lookup indexes."""
        self.collection("users").create_index([("id", ASCENDING)], unique=True)
        self.collection("users").create_index([("email", ASCENDING)], unique=True)
        self.collection("products").create_index([("id", ASCENDING)], unique=True)
        self.collection("products").create_index([("gender", ASCENDING), ("is_available", ASCENDING)])
        self.collection("recommendations").create_index([("id", ASCENDING)], unique=True)
        self.collection("recommendations").create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    def collection(self, name: str):
        """Get a MongoDB collection."""
        return self._db[name]

    def health_check(self) -> dict:
        """Check MongoDB connection health."""
        try:
            self._client.admin.command("ping")
            return {"status": "connected", "uri": self.uri[:30] + "..."}
        except PyMongoError as e:
            return {"status": "disconnected", "reason": str(e)}

    def close(self):
        self._client.close()
