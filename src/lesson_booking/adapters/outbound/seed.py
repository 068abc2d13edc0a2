from __future__ import annotations

from typing import Sequence

from loguru import logger
from returns.result import Failure, Result, Success

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.lesson import Lesson, LessonId
from lesson_booking.core.domain.model.money import DEFAULT_CURRENCY, Money
from lesson_booking.core.ports.outbound.catalog import CatalogStore

_SEED = (
    ("lesson-01", "Maths", "Hendon", "100", "images/maths.png", "Algebra, geometry and exam practice."),
    ("lesson-02", "English", "Colindale", "80", "images/english.png", "Reading, writing and literature."),
    ("lesson-03", "Music", "Brent Cross", "90", "images/music.png", "Piano and music theory for beginners."),
    ("lesson-04", "Science", "Golders Green", "95", "images/science.png", "Hands-on physics and chemistry."),
    ("lesson-05", "Art", "Hendon", "70", "images/art.png", "Drawing, painting and sketching."),
    ("lesson-06", "Coding", "Mill Hill", "120", "images/coding.png", "Python programming from scratch."),
    ("lesson-07", "History", "Finchley", "75", "images/history.png", "British and world history."),
    ("lesson-08", "Spanish", "Edgware", "85", "images/spanish.png", "Conversational Spanish."),
)

DEFAULT_SPACES = 5


def default_lessons(currency: str = DEFAULT_CURRENCY) -> Sequence[Lesson]:
    return tuple(
        Lesson(
            lesson_id=LessonId(lesson_id),
            subject=subject,
            location=location,
            price=Money.of(price, currency),
            spaces_available=DEFAULT_SPACES,
            icon=icon,
            description=description,
        )
        for lesson_id, subject, location, price, icon, description in _SEED
    )


def seed_catalog(
    catalog: CatalogStore, lessons: Sequence[Lesson]
) -> Result[int, BookingError]:
    """Insert ``lessons`` into an empty catalog; a non-empty catalog is left alone."""
    existing = catalog.list_all()
    if isinstance(existing, Failure):
        return existing
    if existing.unwrap():
        return Success(0)

    for lesson in lessons:
        added = catalog.add(lesson)
        if isinstance(added, Failure):
            return added
    logger.info(f"seeded catalog with {len(lessons)} lessons")
    return Success(len(lessons))
