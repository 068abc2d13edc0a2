from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.lesson import Lesson, LessonId, LessonPatch


class CatalogStore(Protocol):
    def add(self, lesson: Lesson) -> Result[LessonId, BookingError]: ...

    def get(self, lesson_id: LessonId) -> Result[Lesson, BookingError]: ...

    def list_all(self) -> Result[Sequence[Lesson], BookingError]: ...

    def search(self, term: str | None) -> Result[Sequence[Lesson], BookingError]:
        """Empty or absent term behaves as ``list_all``."""
        ...

    def apply_admin_update(
        self, lesson_id: LessonId, patch: LessonPatch
    ) -> Result[Lesson, BookingError]:
        """Direct overwrite; must still refuse a negative resulting spaces_available."""
        ...
