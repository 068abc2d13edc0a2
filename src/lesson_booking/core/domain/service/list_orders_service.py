from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Result

from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.domain.model.order import Order
from lesson_booking.core.ports.inbound.list_orders import ListOrdersUseCase
from lesson_booking.core.ports.outbound.orders import OrderStore


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderStore


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(self) -> Result[Sequence[Order], BookingError]:
        return self.deps.orders.list_all()
