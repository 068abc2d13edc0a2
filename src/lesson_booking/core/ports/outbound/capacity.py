from __future__ import annotations

from typing import Protocol

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.lesson import Lesson, LessonId


class CapacityLedger(Protocol):
    """
    Both operations must be a single conditional update on one record,
    never a read followed by a separate write.
    """

    def try_decrement(
        self, lesson_id: LessonId, quantity: int
    ) -> Result[Lesson, BookingError]:
        """
        Succeeds only when spaces_available >= quantity and returns the lesson
        as it stands after the decrement. A missing lesson or short capacity
        yields InsufficientCapacity and leaves the record unchanged.
        """
        ...

    def compensate(
        self, lesson_id: LessonId, quantity: int
    ) -> Result[None, BookingError]: ...
