from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Tuple
from uuid import UUID, uuid4

from lesson_booking.core.domain.model.lesson import LessonId
from lesson_booking.core.domain.model.money import DEFAULT_CURRENCY, Money, fold_money


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())


@dataclass(frozen=True)
class LineItem:
    lesson_id: LessonId
    quantity: int
    unit_price: Money  # snapshot taken when the line was reserved

    def subtotal(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    customer_name: str
    customer_phone: str
    items: Tuple[LineItem, ...]
    created_at: datetime

    def total(self) -> Money:
        currency = self.items[0].unit_price.currency if self.items else DEFAULT_CURRENCY
        return fold_money((it.subtotal() for it in self.items), currency=currency)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
