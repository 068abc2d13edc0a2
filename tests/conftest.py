from decimal import Decimal

import pytest

from lesson_booking.adapters.outbound.in_memory_anomalies import InMemoryAnomalyLog
from lesson_booking.adapters.outbound.in_memory_catalog import InMemoryCatalogStore
from lesson_booking.adapters.outbound.in_memory_orders import InMemoryOrderStore
from lesson_booking.adapters.outbound.in_memory_store import InMemoryStoreHandle
from lesson_booking.adapters.outbound.seed import default_lessons, seed_catalog
from lesson_booking.core.domain.model.lesson import Lesson, LessonId
from lesson_booking.core.domain.model.money import Money
from lesson_booking.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)


@pytest.fixture
def handle():
    """Connected in-memory store handle"""
    h = InMemoryStoreHandle()
    h.connect()
    yield h
    h.close()


@pytest.fixture
def catalog(handle):
    return InMemoryCatalogStore(handle)


@pytest.fixture
def orders(handle):
    return InMemoryOrderStore(handle)


@pytest.fixture
def anomalies():
    return InMemoryAnomalyLog()


@pytest.fixture
def seeded_catalog(catalog):
    """Catalog holding the eight default lessons, five spaces each"""
    seed_catalog(catalog, default_lessons())
    return catalog


@pytest.fixture
def make_lesson(catalog):
    """Add a lesson to the catalog and return it"""

    def _make(
        lesson_id: str,
        spaces: int,
        price: str = "10.00",
        subject: str = "Maths",
        location: str = "Hendon",
    ) -> Lesson:
        lesson = Lesson(
            lesson_id=LessonId(lesson_id),
            subject=subject,
            location=location,
            price=Money.of(Decimal(price)),
            spaces_available=spaces,
            icon=f"images/{lesson_id}.png",
            description=f"{subject} at {location}",
        )
        catalog.add(lesson).unwrap()
        return lesson

    return _make


@pytest.fixture
def service(catalog, orders, anomalies):
    return PlaceOrderService(
        PlaceOrderDeps(catalog=catalog, ledger=catalog, orders=orders, anomalies=anomalies)
    )


@pytest.fixture
def spaces_of(catalog):
    def _spaces(lesson_id: str) -> int:
        return catalog.get(LessonId(lesson_id)).unwrap().spaces_available

    return _spaces
