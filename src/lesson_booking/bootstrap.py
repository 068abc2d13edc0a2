from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from loguru import logger
from returns.result import Failure, Result

from lesson_booking.adapters.outbound.in_memory_anomalies import InMemoryAnomalyLog
from lesson_booking.adapters.outbound.in_memory_catalog import InMemoryCatalogStore
from lesson_booking.adapters.outbound.in_memory_orders import InMemoryOrderStore
from lesson_booking.adapters.outbound.in_memory_store import InMemoryStoreHandle
from lesson_booking.adapters.outbound.mongo_anomalies import MongoAnomalyLog
from lesson_booking.adapters.outbound.mongo_catalog import MongoCatalogStore
from lesson_booking.adapters.outbound.mongo_orders import MongoOrderStore
from lesson_booking.adapters.outbound.mongo_store import MongoStoreHandle
from lesson_booking.adapters.outbound.seed import default_lessons, seed_catalog
from lesson_booking.config import Settings
from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.service.catalog_service import (
    CatalogDeps,
    CatalogService,
)
from lesson_booking.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from lesson_booking.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from lesson_booking.core.ports.outbound.anomalies import AnomalyRecorder


class StoreHandle(Protocol):
    @property
    def is_ready(self) -> bool: ...

    def connect(self) -> Result[None, BookingError]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    catalog: CatalogService
    list_orders: ListOrdersService
    anomalies: AnomalyRecorder
    handle: StoreHandle


def build_usecases(settings: Settings) -> UseCases:
    """Build the store handle once and wire every service to it."""
    if settings.STORE_BACKEND == "mongo":
        handle = MongoStoreHandle(
            uri=settings.MONGODB_URI or "",
            db_name=settings.MONGODB_DB,
            timeout_ms=settings.MONGODB_TIMEOUT_MS,
        )
        catalog = MongoCatalogStore(handle, currency=settings.CURRENCY)
        orders = MongoOrderStore(handle)
        anomalies = MongoAnomalyLog(handle)
    else:
        handle = InMemoryStoreHandle()
        catalog = InMemoryCatalogStore(handle)
        orders = InMemoryOrderStore(handle)
        anomalies = InMemoryAnomalyLog()

    # an unreachable store is not fatal: requests answer StoreUnavailable
    connected = handle.connect()
    if isinstance(connected, Failure):
        logger.error(f"store not ready at startup: {connected.failure()}")
    elif settings.SEED_CATALOG:
        seeded = seed_catalog(catalog, default_lessons(settings.CURRENCY))
        if isinstance(seeded, Failure):
            logger.error(f"catalog seeding failed: {seeded.failure()}")

    return UseCases(
        place_order=PlaceOrderService(
            PlaceOrderDeps(
                catalog=catalog, ledger=catalog, orders=orders, anomalies=anomalies
            )
        ),
        catalog=CatalogService(CatalogDeps(catalog=catalog, currency=settings.CURRENCY)),
        list_orders=ListOrdersService(ListOrdersDeps(orders=orders)),
        anomalies=anomalies,
        handle=handle,
    )
