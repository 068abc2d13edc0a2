from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.order import Order, OrderId


class OrderStore(Protocol):
    def append(self, order: Order) -> Result[OrderId, BookingError]: ...

    def list_all(self) -> Result[Sequence[Order], BookingError]: ...
