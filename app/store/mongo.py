"""MongoDB-backed key-value store."""
import re
from typing import Any

from pymongo.errors import PyMongoError

from app.store.base import KeyValueStore, StoreError


class MongoKeyValueStore(KeyValueStore):
    """Stores each key as one document: {"_id": key, "value": value}."""

    def __init__(self, db, collection_name: str = "kv_store"):
        """Initialize store with database connection."""
        self.collection = db[collection_name]

    async def get(self, key: str) -> Any:
        try:
            doc = await self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StoreError(f"Failed to read {key!r}: {e}") from e

        if not doc:
            return None
        return doc.get("value")

    async def set(self, key: str, value: Any) -> None:
        try:
            await self.collection.update_one(
                {"_id": key},
                {"$set": {"value": value}},
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to write {key!r}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise StoreError(f"Failed to delete {key!r}: {e}") from e

    async def keys(self, prefix: str = "") -> list[str]:
        query = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
        try:
            cursor = self.collection.find(query, {"_id": 1})
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"Failed to list keys with prefix {prefix!r}: {e}") from e
        return [doc["_id"] for doc in docs]
