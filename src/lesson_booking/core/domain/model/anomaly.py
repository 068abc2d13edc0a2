from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from lesson_booking.core.domain.model.lesson import LessonId
from lesson_booking.core.domain.model.order import OrderId


@dataclass(frozen=True)
class LedgerAnomaly:
    """A compensating increment that did not apply; the lesson's spaces may be short."""

    order_id: OrderId
    lesson_id: LessonId
    quantity: int
    reason: str
    recorded_at: datetime
