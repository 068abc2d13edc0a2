from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BookingError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class ValidationFailed(BookingError):
    pass


@dataclass(frozen=True)
class NotFoundError(BookingError):
    pass


@dataclass(frozen=True)
class LessonNotFound(NotFoundError):
    lesson_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"lesson_not_found: {self.lesson_id} ({self.message})"


@dataclass(frozen=True)
class InsufficientCapacity(BookingError):
    lesson_id: str
    requested: int

    def __str__(self) -> str:  # pragma: no cover
        return (
            f"insufficient_capacity: lesson={self.lesson_id} "
            f"requested={self.requested} ({self.message})"
        )


@dataclass(frozen=True)
class PersistenceFailed(BookingError):
    pass


@dataclass(frozen=True)
class StoreUnavailable(BookingError):
    pass
