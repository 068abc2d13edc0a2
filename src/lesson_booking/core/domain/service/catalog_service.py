from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from loguru import logger
from returns.result import Failure, Result, Success

from lesson_booking.core.domain.model.errors import BookingError, ValidationFailed
from lesson_booking.core.domain.model.lesson import Lesson, LessonId, LessonPatch
from lesson_booking.core.domain.model.money import DEFAULT_CURRENCY, Money
from lesson_booking.core.ports.inbound.catalog import (
    CatalogUseCase,
    SearchLessonsQuery,
    UpdateLessonCommand,
)
from lesson_booking.core.ports.outbound.catalog import CatalogStore


@dataclass(frozen=True)
class CatalogDeps:
    catalog: CatalogStore
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class CatalogService(CatalogUseCase):
    deps: CatalogDeps

    def list_lessons(self) -> Result[Sequence[Lesson], BookingError]:
        return self.deps.catalog.list_all()

    def search_lessons(
        self, query: SearchLessonsQuery
    ) -> Result[Sequence[Lesson], BookingError]:
        # the term is matched verbatim; only a missing or empty one lists all
        return self.deps.catalog.search(query.term or None)

    def update_lesson(self, command: UpdateLessonCommand) -> Result[Lesson, BookingError]:
        patch = _to_patch(command, self.deps.currency)
        if isinstance(patch, Failure):
            return patch

        updated = self.deps.catalog.apply_admin_update(
            LessonId(command.lesson_id), patch.unwrap()
        )
        if isinstance(updated, Success):
            logger.info(
                f"lesson {command.lesson_id} updated by admin: "
                f"{sorted(patch.unwrap().changes())}"
            )
        return updated


def _to_patch(
    cmd: UpdateLessonCommand, currency: str
) -> Result[LessonPatch, BookingError]:
    if not cmd.lesson_id.strip():
        return Failure(ValidationFailed("lesson id is required"))
    for name in ("subject", "location"):
        value = getattr(cmd, name)
        if value is not None and not value.strip():
            return Failure(ValidationFailed(f"{name} must be non-empty when provided"))
    if cmd.price is not None and cmd.price < 0:
        return Failure(ValidationFailed("price must be >= 0"))
    if cmd.spaces_available is not None and cmd.spaces_available < 0:
        return Failure(ValidationFailed("spacesAvailable must be >= 0"))

    patch = LessonPatch(
        subject=cmd.subject,
        location=cmd.location,
        price=Money.of(cmd.price, currency) if cmd.price is not None else None,
        spaces_available=cmd.spaces_available,
        icon=cmd.icon,
        description=cmd.description,
    )
    if patch.is_empty():
        return Failure(ValidationFailed("at least one field must be provided"))
    return Success(patch)
