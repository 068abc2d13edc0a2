from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.lesson import Lesson


@dataclass(frozen=True)
class SearchLessonsQuery:
    term: str | None = None


@dataclass(frozen=True)
class UpdateLessonCommand:
    lesson_id: str
    subject: str | None = None
    location: str | None = None
    price: Decimal | None = None
    spaces_available: int | None = None
    icon: str | None = None
    description: str | None = None


class CatalogUseCase(Protocol):
    def list_lessons(self) -> Result[Sequence[Lesson], BookingError]: ...

    def search_lessons(
        self, query: SearchLessonsQuery
    ) -> Result[Sequence[Lesson], BookingError]: ...

    def update_lesson(
        self, command: UpdateLessonCommand
    ) -> Result[Lesson, BookingError]: ...
