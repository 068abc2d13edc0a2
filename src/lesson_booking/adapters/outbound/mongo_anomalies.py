from __future__ import annotations

from datetime import timezone
from typing import Any, Mapping, Sequence
from uuid import UUID

from loguru import logger
from pymongo.errors import PyMongoError
from returns.result import Failure, Result, Success

from lesson_booking.adapters.outbound.mongo_store import (
    ANOMALIES,
    MongoStoreHandle,
    translate_error,
)
from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.lesson import LessonId
from lesson_booking.core.domain.model.order import OrderId
from lesson_booking.core.ports.outbound.anomalies import AnomalyRecorder


class MongoAnomalyLog(AnomalyRecorder):
    def __init__(self, handle: MongoStoreHandle) -> None:
        self.handle = handle

    def record(self, anomaly: LedgerAnomaly) -> None:
        coll = self.handle.collection(ANOMALIES)
        if isinstance(coll, Failure):
            logger.error(f"ledger anomaly not persisted: {coll.failure()}")
            return
        try:
            coll.unwrap().insert_one(
                {
                    "orderId": str(anomaly.order_id.value),
                    "lessonId": anomaly.lesson_id.value,
                    "qty": anomaly.quantity,
                    "reason": anomaly.reason,
                    "recordedAt": anomaly.recorded_at,
                }
            )
        except PyMongoError as exc:
            logger.error(f"ledger anomaly not persisted: {exc}")

    def list_all(self) -> Result[Sequence[LedgerAnomaly], BookingError]:
        coll = self.handle.collection(ANOMALIES)
        if isinstance(coll, Failure):
            return coll
        try:
            docs = list(coll.unwrap().find({}).sort("recordedAt", 1))
        except PyMongoError as exc:
            return Failure(translate_error(exc))
        return Success(tuple(_to_entity(d) for d in docs))


def _to_entity(doc: Mapping[str, Any]) -> LedgerAnomaly:
    recorded_at = doc["recordedAt"]
    if recorded_at.tzinfo is None:
        recorded_at = recorded_at.replace(tzinfo=timezone.utc)
    return LedgerAnomaly(
        order_id=OrderId(UUID(doc["orderId"])),
        lesson_id=LessonId(doc["lessonId"]),
        quantity=int(doc["qty"]),
        reason=doc["reason"],
        recorded_at=recorded_at,
    )
