from __future__ import annotations

from datetime import timezone
from decimal import Decimal
from typing import Any, Mapping, Sequence
from uuid import UUID

from bson import Decimal128
from loguru import logger
from pymongo.errors import DuplicateKeyError, PyMongoError
from returns.result import Failure, Result, Success

from lesson_booking.adapters.outbound.mongo_store import (
    ORDERS,
    MongoStoreHandle,
    translate_error,
)
from lesson_booking.core.domain.model.errors import BookingError, PersistenceFailed
from lesson_booking.core.domain.model.lesson import LessonId
from lesson_booking.core.domain.model.money import Money
from lesson_booking.core.domain.model.order import LineItem, Order, OrderId
from lesson_booking.core.ports.outbound.orders import OrderStore


class MongoOrderStore(OrderStore):
    def __init__(self, handle: MongoStoreHandle) -> None:
        self.handle = handle

    def append(self, order: Order) -> Result[OrderId, BookingError]:
        coll = self.handle.collection(ORDERS)
        if isinstance(coll, Failure):
            return coll
        try:
            coll.unwrap().insert_one(_to_document(order))
        except DuplicateKeyError:
            return Failure(PersistenceFailed("order_id already exists"))
        except PyMongoError as exc:
            return Failure(translate_error(exc, on_write=True))
        return Success(order.order_id)

    def list_all(self) -> Result[Sequence[Order], BookingError]:
        coll = self.handle.collection(ORDERS)
        if isinstance(coll, Failure):
            return coll
        try:
            docs = list(coll.unwrap().find({}).sort("createdAt", 1))
        except PyMongoError as exc:
            return Failure(translate_error(exc))

        current = []
        for doc in docs:
            if not _has_snapshot_shape(doc):
                logger.warning(
                    f"skipping order {doc.get('_id')!r}: stored without line item snapshots"
                )
                continue
            current.append(_to_entity(doc))
        return Success(tuple(current))


def _has_snapshot_shape(doc: Mapping[str, Any]) -> bool:
    # orders written before price snapshots carry lessonIDs and no createdAt
    return "lineItems" in doc and "createdAt" in doc and isinstance(doc["_id"], str)


def _to_document(order: Order) -> dict[str, Any]:
    total = order.total()
    return {
        "_id": str(order.order_id.value),
        "name": order.customer_name,
        "phone": order.customer_phone,
        "lineItems": [
            {
                "lessonId": it.lesson_id.value,
                "qty": it.quantity,
                "unitPrice": Decimal128(str(it.unit_price.amount)),
            }
            for it in order.items
        ],
        "total": Decimal128(str(total.amount)),
        "currency": total.currency,
        "createdAt": order.created_at,
    }


def _to_entity(doc: Mapping[str, Any]) -> Order:
    currency = doc.get("currency", "GBP")
    created_at = doc["createdAt"]
    if created_at.tzinfo is None:
        # BSON dates come back naive unless the client is tz_aware
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Order(
        order_id=OrderId(UUID(doc["_id"])),
        customer_name=doc["name"],
        customer_phone=doc["phone"],
        items=tuple(
            LineItem(
                lesson_id=LessonId(li["lessonId"]),
                quantity=int(li["qty"]),
                unit_price=Money.of(_decimal(li["unitPrice"]), currency),
            )
            for li in doc.get("lineItems", [])
        ),
        created_at=created_at,
    )


def _decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return Decimal(str(value))
