from __future__ import annotations

from dataclasses import dataclass, fields, replace

from lesson_booking.core.domain.model.money import Money


@dataclass(frozen=True)
class LessonId:
    value: str


@dataclass(frozen=True)
class Lesson:
    lesson_id: LessonId
    subject: str
    location: str
    price: Money
    spaces_available: int
    icon: str = ""
    description: str = ""

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on subject or location."""
        needle = term.casefold()
        return needle in self.subject.casefold() or needle in self.location.casefold()

    def with_spaces(self, spaces_available: int) -> "Lesson":
        return replace(self, spaces_available=spaces_available)


@dataclass(frozen=True)
class LessonPatch:
    """Partial administrative overwrite; ``None`` leaves a field untouched."""

    subject: str | None = None
    location: str | None = None
    price: Money | None = None
    spaces_available: int | None = None
    icon: str | None = None
    description: str | None = None

    def changes(self) -> dict[str, object]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        return not self.changes()

    def apply_to(self, lesson: Lesson) -> Lesson:
        return replace(lesson, **self.changes())
