from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from pymongo import MongoClient

from skillbot.core.errors import ContractViolation

DEFAULT_COLLECTION = "skillbot-context"


def _env(name: str, default: str | None = None) -> str:
    val = os.getenv(name, default)
    if val is None or val == "":
        raise RuntimeError(f"Missing required env var: {name}")
    return val


@lru_cache(maxsize=1)
def get_mongo_client(uri: str) -> MongoClient:
    # Short timeout so failures are obvious
    return MongoClient(uri, serverSelectionTimeoutMS=2000)


class MongoMemoryStore:
    """
    Context store backed by one MongoDB collection.

    Each document is ``{"_id": key, "context": value, "expires_at": datetime | None}``.
    Writes are whole-document upserts, so concurrent turns on the same key
    resolve as last write wins.
    """

    def __init__(self, collection, retention: Optional[int] = None) -> None:
        self.collection = collection
        self.retention = retention

    @classmethod
    def from_env(cls, collection_name: str = DEFAULT_COLLECTION, retention: Optional[int] = None) -> "MongoMemoryStore":
        client = get_mongo_client(_env("SKILLBOT_MONGO_URI"))
        db = client[_env("SKILLBOT_MONGO_DB", "skillbot")]
        return cls(db[collection_name], retention=retention)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        document = self.collection.find_one({"_id": key})
        if document is None:
            return None

        expires_at = document.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                return None
        return document.get("context")

    def put(self, key: str, value: Dict[str, Any], retention: Optional[int] = None) -> None:
        retention = retention if retention is not None else self.retention
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=retention) if retention else None
        result = self.collection.replace_one(
            {"_id": key},
            {"_id": key, "context": value, "expires_at": expires_at},
            upsert=True,
        )
        if not result.acknowledged:
            raise ContractViolation(f"Context write for {key} was not acknowledged.")

    def delete(self, key: str) -> bool:
        result = self.collection.delete_one({"_id": key})
        if not result.acknowledged:
            raise ContractViolation(f"Context delete for {key} was not acknowledged.")
        # Deleting a missing key is not an error
        return result.deleted_count == 1
