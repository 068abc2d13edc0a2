from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.order import Order


class ListOrdersUseCase(Protocol):
    def list_orders(self) -> Result[Sequence[Order], BookingError]: ...
