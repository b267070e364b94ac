"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings
from app.store.base import KeyValueStore
from app.store.mongo import MongoKeyValueStore

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None
    store: KeyValueStore | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and bind the key-value store."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        self.store = MongoKeyValueStore(self.db, settings.kv_collection_name)
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")


# Global database instance
database = Database()


async def get_store() -> KeyValueStore:
    """Dependency to get the key-value store."""
    if database.store is None:
        raise RuntimeError("Database not connected")
    return database.store
