from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from lesson_booking.adapters.outbound.in_memory_store import InMemoryStoreHandle
from lesson_booking.core.domain.model.errors import (
    BookingError,
    InsufficientCapacity,
    LessonNotFound,
    PersistenceFailed,
    ValidationFailed,
)
from lesson_booking.core.domain.model.lesson import Lesson, LessonId, LessonPatch
from lesson_booking.core.ports.outbound.capacity import CapacityLedger
from lesson_booking.core.ports.outbound.catalog import CatalogStore


@dataclass
class InMemoryCatalogStore(CatalogStore, CapacityLedger):
    handle: InMemoryStoreHandle

    def add(self, lesson: Lesson) -> Result[LessonId, BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            key = lesson.lesson_id.value
            if key in self.handle.lessons:
                return Failure(PersistenceFailed(f"lesson {key} already exists"))
            self.handle.lessons[key] = lesson
        return Success(lesson.lesson_id)

    def get(self, lesson_id: LessonId) -> Result[Lesson, BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            lesson = self.handle.lessons.get(lesson_id.value)
        if lesson is None:
            return Failure(
                LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
            )
        return Success(lesson)

    def list_all(self) -> Result[Sequence[Lesson], BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            return Success(tuple(self.handle.lessons.values()))

    def search(self, term: str | None) -> Result[Sequence[Lesson], BookingError]:
        if not term:
            return self.list_all()
        return self.list_all().map(
            lambda lessons: tuple(ls for ls in lessons if ls.matches(term))
        )

    def apply_admin_update(
        self, lesson_id: LessonId, patch: LessonPatch
    ) -> Result[Lesson, BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            current = self.handle.lessons.get(lesson_id.value)
            if current is None:
                return Failure(
                    LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
                )
            updated = patch.apply_to(current)
            if updated.spaces_available < 0:
                return Failure(ValidationFailed("spacesAvailable must be >= 0"))
            if updated.price.is_negative():
                return Failure(ValidationFailed("price must be >= 0"))
            self.handle.lessons[lesson_id.value] = updated
        return Success(updated)

    # ---- capacity ledger ---------------------------------------------------

    def try_decrement(
        self, lesson_id: LessonId, quantity: int
    ) -> Result[Lesson, BookingError]:
        if quantity <= 0:
            return Failure(ValidationFailed("quantity must be > 0"))
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            current = self.handle.lessons.get(lesson_id.value)
            if current is None or current.spaces_available < quantity:
                return Failure(
                    InsufficientCapacity(
                        message="not enough spaces available",
                        lesson_id=lesson_id.value,
                        requested=quantity,
                    )
                )
            updated = current.with_spaces(current.spaces_available - quantity)
            self.handle.lessons[lesson_id.value] = updated
        return Success(updated)

    def compensate(self, lesson_id: LessonId, quantity: int) -> Result[None, BookingError]:
        if quantity <= 0:
            return Failure(ValidationFailed("quantity must be > 0"))
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            current = self.handle.lessons.get(lesson_id.value)
            if current is None:
                return Failure(
                    LessonNotFound(message="lesson not found", lesson_id=lesson_id.value)
                )
            self.handle.lessons[lesson_id.value] = current.with_spaces(
                current.spaces_available + quantity
            )
        return Success(None)
