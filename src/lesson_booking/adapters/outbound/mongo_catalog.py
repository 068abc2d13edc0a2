from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Mapping, Sequence

from bson import Decimal128, ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from returns.result import Failure, Result, Success

from lesson_booking.adapters.outbound.mongo_store import (
    LESSONS,
    MongoStoreHandle,
    translate_error,
)
from lesson_booking.core.domain.model.errors import (
    BookingError,
    InsufficientCapacity,
    LessonNotFound,
    PersistenceFailed,
    ValidationFailed,
)
from lesson_booking.core.domain.model.lesson import Lesson, LessonId, LessonPatch
from lesson_booking.core.domain.model.money import DEFAULT_CURRENCY, Money
from lesson_booking.core.ports.outbound.capacity import CapacityLedger
from lesson_booking.core.ports.outbound.catalog import CatalogStore

# document field names, as the lessons collection has always stored them
_FIELDS = {
    "subject": "subject",
    "location": "location",
    "price": "price",
    "spaces_available": "spaces",
    "icon": "icon",
    "description": "description",
}


class MongoCatalogStore(CatalogStore, CapacityLedger):
    def __init__(self, handle: MongoStoreHandle, currency: str = DEFAULT_CURRENCY) -> None:
        self.handle = handle
        self.currency = currency

    def add(self, lesson: Lesson) -> Result[LessonId, BookingError]:
        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        doc = {"_id": _to_key(lesson.lesson_id.value), **_to_fields(lesson)}
        try:
            coll.unwrap().insert_one(doc)
        except DuplicateKeyError:
            return Failure(
                PersistenceFailed(f"lesson {lesson.lesson_id.value} already exists")
            )
        except PyMongoError as exc:
            return Failure(translate_error(exc, on_write=True))
        return Success(lesson.lesson_id)

    def get(self, lesson_id: LessonId) -> Result[Lesson, BookingError]:
        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        try:
            doc = coll.unwrap().find_one({"_id": _to_key(lesson_id.value)})
        except PyMongoError as exc:
            return Failure(translate_error(exc))
        if doc is None:
            return Failure(
                LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
            )
        return Success(self._to_entity(doc))

    def list_all(self) -> Result[Sequence[Lesson], BookingError]:
        return self._find({})

    def search(self, term: str | None) -> Result[Sequence[Lesson], BookingError]:
        if not term:
            return self.list_all()
        pattern = {"$regex": re.escape(term), "$options": "i"}
        return self._find({"$or": [{"subject": pattern}, {"location": pattern}]})

    def apply_admin_update(
        self, lesson_id: LessonId, patch: LessonPatch
    ) -> Result[Lesson, BookingError]:
        if patch.spaces_available is not None and patch.spaces_available < 0:
            return Failure(ValidationFailed("spacesAvailable must be >= 0"))
        if patch.price is not None and patch.price.is_negative():
            return Failure(ValidationFailed("price must be >= 0"))
        changes = {
            _FIELDS[name]: _to_doc_value(value)
            for name, value in patch.changes().items()
        }
        if not changes:
            return Failure(ValidationFailed("at least one field must be provided"))

        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        try:
            doc = coll.unwrap().find_one_and_update(
                {"_id": _to_key(lesson_id.value)},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            return Failure(translate_error(exc, on_write=True))
        if doc is None:
            return Failure(
                LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
            )
        return Success(self._to_entity(doc))

    # ---- capacity ledger ---------------------------------------------------

    def try_decrement(
        self, lesson_id: LessonId, quantity: int
    ) -> Result[Lesson, BookingError]:
        if quantity <= 0:
            return Failure(ValidationFailed("quantity must be > 0"))
        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        # the $gte guard and the $inc are applied by the server as one step
        try:
            doc = coll.unwrap().find_one_and_update(
                {"_id": _to_key(lesson_id.value), "spaces": {"$gte": quantity}},
                {"$inc": {"spaces": -quantity}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            return Failure(translate_error(exc, on_write=True))
        if doc is None:
            return Failure(
                InsufficientCapacity(
                    message="not enough spaces available",
                    lesson_id=lesson_id.value,
                    requested=quantity,
                )
            )
        return Success(self._to_entity(doc))

    def compensate(self, lesson_id: LessonId, quantity: int) -> Result[None, BookingError]:
        if quantity <= 0:
            return Failure(ValidationFailed("quantity must be > 0"))
        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        try:
            res = coll.unwrap().update_one(
                {"_id": _to_key(lesson_id.value)}, {"$inc": {"spaces": quantity}}
            )
        except PyMongoError as exc:
            return Failure(translate_error(exc, on_write=True))
        if res.matched_count == 0:
            return Failure(
                LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
            )
        return Success(None)

    # ---- mapping -----------------------------------------------------------

    def _find(self, query: Mapping[str, Any]) -> Result[Sequence[Lesson], BookingError]:
        coll = self.handle.collection(LESSONS)
        if isinstance(coll, Failure):
            return coll
        try:
            docs = list(coll.unwrap().find(query))
        except PyMongoError as exc:
            return Failure(translate_error(exc))
        return Success(tuple(self._to_entity(d) for d in docs))

    def _to_entity(self, doc: Mapping[str, Any]) -> Lesson:
        return Lesson(
            lesson_id=LessonId(str(doc["_id"])),
            subject=str(doc.get("subject", "")),
            location=str(doc.get("location", "")),
            price=Money.of(_from_doc_number(doc.get("price", 0)), self.currency),
            spaces_available=int(doc.get("spaces", 0)),
            icon=str(doc.get("icon", "")),
            description=str(doc.get("description", "")),
        )


def _to_key(value: str) -> Any:
    # seeded databases use ObjectId keys; anything else is matched verbatim
    return ObjectId(value) if ObjectId.is_valid(value) else value


def _to_fields(lesson: Lesson) -> dict[str, Any]:
    return {
        _FIELDS[name]: _to_doc_value(getattr(lesson, name)) for name in _FIELDS
    }


def _to_doc_value(value: Any) -> Any:
    if isinstance(value, Money):
        return Decimal128(str(value.amount))
    return value


def _from_doc_number(value: Any) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return Decimal(str(value))
