from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.order import Order


@dataclass(frozen=True)
class PlaceOrderLine:
    lesson_id: str
    quantity: int


@dataclass(frozen=True)
class PlaceOrderCommand:
    customer_name: str
    customer_phone: str
    lines: Sequence[PlaceOrderLine]
    declared_total: Decimal | None = None  # informational, never trusted


class PlaceOrderUseCase(Protocol):
    def place_order(self, command: PlaceOrderCommand) -> Result[Order, BookingError]: ...
