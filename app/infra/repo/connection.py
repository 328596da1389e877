# app/infra/repo/connection.py
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

MONGO_URI        = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME          = os.getenv("MONGO_DB", "expiry_tracker")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

logger = logging.getLogger(__name__)


class MongoConnection:
    """
    Lazy, memoized Mongo handle shared by the repositories.

    - ensure_connected(): first caller connects + pings, later callers reuse.
    - A failed attempt is NOT memoized; the next call tries again.
    """

    def __init__(
        self,
        uri: str = MONGO_URI,
        db_name: str = DB_NAME,
        *,
        timeout_ms: int = MONGO_TIMEOUT_MS,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ) -> None:
        self.uri = uri
        self.db_name = db_name
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._db: Optional[AsyncIOMotorDatabase] = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._db is not None

    async def ensure_connected(self) -> AsyncIOMotorDatabase:
        if self._db is not None:
            return self._db
        async with self._lock:
            if self._db is None:
                client = self._client_factory(
                    self.uri,
                    serverSelectionTimeoutMS=self.timeout_ms,
                    tz_aware=True,
                )
                try:
                    await client.admin.command("ping")
                except Exception as e:
                    logger.error("MongoDB connection error: %s", e)
                    client.close()
                    raise
                self._client = client
                self._db = client[self.db_name]
                logger.info("MongoDB connected db=%s", self.db_name)
        return self._db

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
