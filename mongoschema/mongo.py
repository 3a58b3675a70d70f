"""Record supplier reading documents from a MongoDB deployment."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .errors import ConfigError, SupplyError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


class MongoSupplier:
    """Lazily stream documents from the collections of one database.

    Reads go to secondaries when available; the schema only needs an
    eventually consistent sample.
    """

    def __init__(
        self,
        url: str,
        db: str,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        client: Optional[MongoClient] = None,
    ) -> None:
        if not url:
            raise ConfigError("no URL specified", path="url")
        if not db:
            raise ConfigError("no database specified", path="db")
        self.url = url
        self.db = db
        self.batch_size = batch_size
        self._client = client

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            logger.info("Connecting to MongoDB for database %s", self.db)
            try:
                self._client = MongoClient(self.url, readPreference="secondaryPreferred")
            except PyMongoError as exc:
                raise SupplyError(f"cannot connect to {self.url}: {exc}") from exc
        return self._client

    def iter_records(self, collection: str, limit: Optional[int] = None) -> Iterator[dict[str, Any]]:
        """Yield documents of ``collection``; ``limit`` of None or 0 means all."""

        cursor = self.client[self.db][collection].find({}, batch_size=self.batch_size)
        if limit:
            cursor = cursor.limit(limit)
        try:
            with cursor:
                yield from cursor
        except PyMongoError as exc:
            raise SupplyError(
                f"failed reading {self.db}.{collection}: {exc}", collection=collection
            ) from exc

    def close(self) -> None:
        """Close the underlying client if one was opened."""

        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "MongoSupplier":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
