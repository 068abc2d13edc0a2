from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from lesson_booking.adapters.outbound.in_memory_store import InMemoryStoreHandle
from lesson_booking.core.domain.model.errors import BookingError, PersistenceFailed
from lesson_booking.core.domain.model.order import Order, OrderId
from lesson_booking.core.ports.outbound.orders import OrderStore


@dataclass
class InMemoryOrderStore(OrderStore):
    handle: InMemoryStoreHandle
    reject_writes: bool = False

    def append(self, order: Order) -> Result[OrderId, BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        if self.reject_writes:
            return Failure(PersistenceFailed("order store is read-only"))
        key = str(order.order_id.value)
        with self.handle.lock:
            if key in self.handle.orders:
                return Failure(PersistenceFailed("order_id already exists"))
            self.handle.orders[key] = order
        return Success(order.order_id)

    def list_all(self) -> Result[Sequence[Order], BookingError]:
        ready = self.handle.ensure_ready()
        if isinstance(ready, Failure):
            return ready
        with self.handle.lock:
            return Success(tuple(self.handle.orders.values()))  # insertion order
