from __future__ import annotations

from typing import Any, Callable

from loguru import logger
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError
from returns.result import Failure, Result, Success

from lesson_booking.core.domain.model.errors import (
    BookingError,
    PersistenceFailed,
    StoreUnavailable,
)

LESSONS = "lessons"
ORDERS = "orders"
ANOMALIES = "ledger_anomalies"


class MongoStoreHandle:
    """
    One MongoClient for the whole process, built at startup and handed to
    every Mongo-backed store. Until ``connect`` succeeds (or after
    ``close``) every store operation fails with StoreUnavailable.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        timeout_ms: int = 5000,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Any = None
        self._db: Database | None = None

    @property
    def is_ready(self) -> bool:
        return self._db is not None

    def connect(self) -> Result[None, BookingError]:
        client = None
        try:
            client = self._client_factory(
                self._uri, serverSelectionTimeoutMS=self._timeout_ms
            )
            client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                client.close()
            logger.error(f"MongoDB connection failed: {exc}")
            return Failure(StoreUnavailable(f"database unreachable: {exc}"))

        self._client = client
        self._db = client[self._db_name]
        logger.info(f"connected to MongoDB database {self._db_name!r}")
        return Success(None)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None

    def collection(self, name: str) -> Result[Collection, BookingError]:
        if self._db is None:
            return Failure(StoreUnavailable("database not connected yet"))
        return Success(self._db[name])


def translate_error(exc: PyMongoError, on_write: bool = False) -> BookingError:
    """Map a driver error onto the booking taxonomy."""
    if isinstance(exc, ConnectionFailure):
        return StoreUnavailable(f"database unreachable: {exc}")
    if on_write:
        return PersistenceFailed(f"write rejected: {exc}")
    return StoreUnavailable(f"read failed: {exc}")
