"""
MongoDB adapters against mocked pymongo collections
"""

import re
from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from bson import Decimal128, ObjectId
from pymongo import ReturnDocument
from pymongo.errors import (
    AutoReconnect,
    DuplicateKeyError,
    OperationFailure,
    ServerSelectionTimeoutError,
)
from returns.result import Success

from lesson_booking.adapters.outbound.mongo_anomalies import MongoAnomalyLog
from lesson_booking.adapters.outbound.mongo_catalog import MongoCatalogStore
from lesson_booking.adapters.outbound.mongo_orders import MongoOrderStore
from lesson_booking.adapters.outbound.mongo_store import MongoStoreHandle
from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import (
    InsufficientCapacity,
    LessonNotFound,
    PersistenceFailed,
    StoreUnavailable,
    ValidationFailed,
)
from lesson_booking.core.domain.model.lesson import LessonId, LessonPatch
from lesson_booking.core.domain.model.money import Money
from lesson_booking.core.domain.model.order import LineItem, Order, OrderId


def _lesson_doc(_id="lesson-01", spaces=2, price=100):
    return {
        "_id": _id,
        "subject": "Maths",
        "location": "Hendon",
        "price": price,
        "spaces": spaces,
        "icon": "images/maths.png",
        "description": "Algebra",
    }


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def client(collection):
    client = MagicMock()
    db = MagicMock()
    client.__getitem__.return_value = db
    db.__getitem__.return_value = collection
    return client


@pytest.fixture
def mongo_handle(client):
    handle = MongoStoreHandle(
        "mongodb://test", "edunovaDB", client_factory=lambda *a, **kw: client
    )
    handle.connect().unwrap()
    return handle


@pytest.fixture
def mongo_catalog(mongo_handle):
    return MongoCatalogStore(mongo_handle, currency="GBP")


class TestMongoStoreHandle:
    def test_connect_pings_and_becomes_ready(self, client):
        handle = MongoStoreHandle("mongodb://test", "edunovaDB", client_factory=lambda *a, **kw: client)

        assert not handle.is_ready
        assert isinstance(handle.connect(), Success)
        assert handle.is_ready
        client.admin.command.assert_called_once_with("ping")
        client.__getitem__.assert_called_with("edunovaDB")

    def test_unreachable_server_leaves_handle_not_ready(self, client):
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        handle = MongoStoreHandle("mongodb://test", "edunovaDB", client_factory=lambda *a, **kw: client)

        err = handle.connect().failure()

        assert isinstance(err, StoreUnavailable)
        assert not handle.is_ready
        assert isinstance(handle.collection("lessons").failure(), StoreUnavailable)
        client.close.assert_called_once()

    def test_close_makes_stores_unavailable(self, mongo_handle, mongo_catalog, client):
        mongo_handle.close()

        client.close.assert_called_once()
        assert isinstance(mongo_catalog.list_all().failure(), StoreUnavailable)


class TestMongoCapacityLedger:
    def test_try_decrement_is_one_conditional_update(self, mongo_catalog, collection):
        collection.find_one_and_update.return_value = _lesson_doc(spaces=2)

        lesson = mongo_catalog.try_decrement(LessonId("lesson-01"), 3).unwrap()

        collection.find_one_and_update.assert_called_once_with(
            {"_id": "lesson-01", "spaces": {"$gte": 3}},
            {"$inc": {"spaces": -3}},
            return_document=ReturnDocument.AFTER,
        )
        assert lesson.spaces_available == 2
        assert lesson.price == Money.of("100", "GBP")

    def test_try_decrement_without_match_is_insufficient(self, mongo_catalog, collection):
        collection.find_one_and_update.return_value = None

        err = mongo_catalog.try_decrement(LessonId("lesson-01"), 3).failure()

        assert isinstance(err, InsufficientCapacity)
        assert err.lesson_id == "lesson-01"
        assert err.requested == 3

    def test_object_id_keys(self, mongo_catalog, collection):
        oid = ObjectId()
        collection.find_one_and_update.return_value = _lesson_doc(_id=oid)

        lesson = mongo_catalog.try_decrement(LessonId(str(oid)), 1).unwrap()

        query = collection.find_one_and_update.call_args.args[0]
        assert query["_id"] == oid
        assert lesson.lesson_id == LessonId(str(oid))

    def test_compensate_increments(self, mongo_catalog, collection):
        collection.update_one.return_value.matched_count = 1

        assert isinstance(mongo_catalog.compensate(LessonId("lesson-01"), 2), Success)
        collection.update_one.assert_called_once_with(
            {"_id": "lesson-01"}, {"$inc": {"spaces": 2}}
        )

    def test_compensate_missing_lesson(self, mongo_catalog, collection):
        collection.update_one.return_value.matched_count = 0
        err = mongo_catalog.compensate(LessonId("lesson-01"), 2).failure()
        assert isinstance(err, LessonNotFound)

    def test_connection_loss_is_store_unavailable(self, mongo_catalog, collection):
        collection.find_one_and_update.side_effect = AutoReconnect("primary stepped down")
        err = mongo_catalog.try_decrement(LessonId("lesson-01"), 1).failure()
        assert isinstance(err, StoreUnavailable)

    def test_rejected_write_is_persistence_failed(self, mongo_catalog, collection):
        collection.update_one.side_effect = OperationFailure("not authorized")
        err = mongo_catalog.compensate(LessonId("lesson-01"), 1).failure()
        assert isinstance(err, PersistenceFailed)


class TestMongoCatalogReads:
    def test_search_escapes_the_term(self, mongo_catalog, collection):
        collection.find.return_value = [_lesson_doc()]

        found = mongo_catalog.search("c++").unwrap()

        pattern = {"$regex": re.escape("c++"), "$options": "i"}
        collection.find.assert_called_once_with(
            {"$or": [{"subject": pattern}, {"location": pattern}]}
        )
        assert len(found) == 1

    def test_empty_search_lists_all(self, mongo_catalog, collection):
        collection.find.return_value = []
        mongo_catalog.search("").unwrap()
        collection.find.assert_called_once_with({})

    def test_get_missing(self, mongo_catalog, collection):
        collection.find_one.return_value = None
        assert isinstance(mongo_catalog.get(LessonId("nope")).failure(), LessonNotFound)

    def test_decimal128_prices(self, mongo_catalog, collection):
        collection.find_one.return_value = _lesson_doc(price=Decimal128("12.50"))
        assert mongo_catalog.get(LessonId("lesson-01")).unwrap().price == Money.of("12.50")


class TestMongoAdminUpdate:
    def test_sets_mapped_fields(self, mongo_catalog, collection):
        collection.find_one_and_update.return_value = _lesson_doc(spaces=7, price=Decimal128("12.00"))

        lesson = mongo_catalog.apply_admin_update(
            LessonId("lesson-01"),
            LessonPatch(spaces_available=7, price=Money.of("12")),
        ).unwrap()

        collection.find_one_and_update.assert_called_once_with(
            {"_id": "lesson-01"},
            {"$set": {"spaces": 7, "price": Decimal128("12.00")}},
            return_document=ReturnDocument.AFTER,
        )
        assert lesson.spaces_available == 7

    def test_negative_spaces_never_reach_the_server(self, mongo_catalog, collection):
        err = mongo_catalog.apply_admin_update(
            LessonId("lesson-01"), LessonPatch(spaces_available=-3)
        ).failure()

        assert isinstance(err, ValidationFailed)
        collection.find_one_and_update.assert_not_called()

    def test_unknown_lesson(self, mongo_catalog, collection):
        collection.find_one_and_update.return_value = None
        err = mongo_catalog.apply_admin_update(
            LessonId("lesson-01"), LessonPatch(icon="x.png")
        ).failure()
        assert isinstance(err, LessonNotFound)


class TestMongoOrderStore:
    @pytest.fixture
    def order(self):
        return Order(
            order_id=OrderId.new(),
            customer_name="Ada",
            customer_phone="0123",
            items=(LineItem(LessonId("lesson-01"), 2, Money.of("10")),),
            created_at=datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc),
        )

    def test_append_writes_snapshot_document(self, mongo_handle, collection, order):
        store = MongoOrderStore(mongo_handle)

        assert store.append(order).unwrap() == order.order_id

        doc = collection.insert_one.call_args.args[0]
        assert doc["_id"] == str(order.order_id.value)
        assert doc["lineItems"] == [
            {"lessonId": "lesson-01", "qty": 2, "unitPrice": Decimal128("10.00")}
        ]
        assert doc["total"] == Decimal128("20.00")

    def test_duplicate_key(self, mongo_handle, collection, order):
        collection.insert_one.side_effect = DuplicateKeyError("E11000")
        err = MongoOrderStore(mongo_handle).append(order).failure()
        assert isinstance(err, PersistenceFailed)

    def test_list_all_restores_orders(self, mongo_handle, collection, order):
        oid = uuid4()
        collection.find.return_value.sort.return_value = [
            {
                "_id": str(oid),
                "name": "Ada",
                "phone": "0123",
                "lineItems": [{"lessonId": "lesson-01", "qty": 2, "unitPrice": Decimal128("10.00")}],
                "total": Decimal128("20.00"),
                "currency": "GBP",
                "createdAt": datetime(2026, 1, 5, 9, 30),
            }
        ]

        (restored,) = MongoOrderStore(mongo_handle).list_all().unwrap()

        assert restored.order_id == OrderId(oid)
        assert restored.total() == Money.of("20.00")
        assert restored.created_at.tzinfo is timezone.utc

    def test_list_all_skips_orders_without_snapshots(self, mongo_handle, collection, order):
        legacy = {
            "_id": ObjectId(),
            "name": "Old Customer",
            "phone": "0999",
            "lessonIDs": [{"lessonId": str(ObjectId()), "qty": 1}],
            "total": 100,
        }
        collection.find.return_value.sort.return_value = [
            legacy,
            {
                "_id": str(order.order_id.value),
                "name": "Ada",
                "phone": "0123",
                "lineItems": [{"lessonId": "lesson-01", "qty": 2, "unitPrice": Decimal128("10.00")}],
                "total": Decimal128("20.00"),
                "currency": "GBP",
                "createdAt": datetime(2026, 1, 5, 9, 30),
            },
        ]

        restored = MongoOrderStore(mongo_handle).list_all().unwrap()

        assert [o.order_id for o in restored] == [order.order_id]


class TestMongoAnomalyLog:
    def test_record_inserts(self, mongo_handle, collection):
        anomaly = LedgerAnomaly(
            order_id=OrderId.new(),
            lesson_id=LessonId("lesson-01"),
            quantity=2,
            reason="timeout",
            recorded_at=datetime.now(timezone.utc),
        )

        MongoAnomalyLog(mongo_handle).record(anomaly)

        doc = collection.insert_one.call_args.args[0]
        assert doc["lessonId"] == "lesson-01"
        assert doc["qty"] == 2

    def test_record_on_dead_store_does_not_raise(self, mongo_handle, collection):
        collection.insert_one.side_effect = AutoReconnect("gone")
        anomaly = LedgerAnomaly(
            order_id=OrderId.new(),
            lesson_id=LessonId("lesson-01"),
            quantity=1,
            reason="timeout",
            recorded_at=datetime.now(timezone.utc),
        )

        MongoAnomalyLog(mongo_handle).record(anomaly)
