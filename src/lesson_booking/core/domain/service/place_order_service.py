from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from loguru import logger
from returns.pipeline import flow
from returns.pointfree import bind
from returns.result import Failure, Result, Success

from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import (
    BookingError,
    LessonNotFound,
    PersistenceFailed,
    ValidationFailed,
)
from lesson_booking.core.domain.model.lesson import LessonId
from lesson_booking.core.domain.model.order import LineItem, Order, OrderId, now_utc
from lesson_booking.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderUseCase,
)
from lesson_booking.core.ports.outbound.anomalies import AnomalyRecorder
from lesson_booking.core.ports.outbound.capacity import CapacityLedger
from lesson_booking.core.ports.outbound.catalog import CatalogStore
from lesson_booking.core.ports.outbound.orders import OrderStore


@dataclass(frozen=True)
class PlaceOrderDeps:
    catalog: CatalogStore
    ledger: CapacityLedger
    orders: OrderStore
    anomalies: AnomalyRecorder


@dataclass(frozen=True)
class PlaceOrderContext:
    order_id: OrderId
    command: PlaceOrderCommand
    reserved: Tuple[LineItem, ...] = ()


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    """
    Reserves capacity line by line and persists the order.

    There is no cross-record transaction: each line is reserved with the
    ledger's conditional decrement, and a failure part way through is undone
    by compensating the lines already reserved. Readers may briefly see a
    decrement that is later compensated.
    """

    deps: PlaceOrderDeps

    def place_order(self, command: PlaceOrderCommand) -> Result[Order, BookingError]:
        order_id = OrderId.new()
        result: Result[Order, BookingError] = flow(
            command,
            _validate_command,
            bind(self._check_lessons_exist),
            bind(lambda c: self._reserve_all(PlaceOrderContext(order_id, c))),
            bind(self._persist),
        )

        if isinstance(result, Success):
            order = result.unwrap()
            logger.info(
                f"order {order.order_id.value} placed: "
                f"{len(order.items)} line(s), total {order.total().amount}"
            )
        else:
            logger.warning(f"order {order_id.value} rejected: {result.failure()}")
        return result

    # ---- side effects ------------------------------------------------------

    def _check_lessons_exist(
        self, cmd: PlaceOrderCommand
    ) -> Result[PlaceOrderCommand, BookingError]:
        for i, ln in enumerate(cmd.lines):
            found = self.deps.catalog.get(LessonId(ln.lesson_id))
            if isinstance(found, Failure):
                err = found.failure()
                if isinstance(err, LessonNotFound):
                    return Failure(
                        ValidationFailed(
                            f"lines[{i}].lesson_id references unknown lesson "
                            f"{ln.lesson_id!r}"
                        )
                    )
                return Failure(err)
        return Success(cmd)

    def _reserve_all(
        self, ctx: PlaceOrderContext
    ) -> Result[PlaceOrderContext, BookingError]:
        reserved: List[LineItem] = []
        try:
            for ln in ctx.command.lines:
                lesson_id = LessonId(ln.lesson_id)
                attempt = self.deps.ledger.try_decrement(lesson_id, ln.quantity)
                if isinstance(attempt, Failure):
                    self._compensate(ctx.order_id, reserved)
                    return attempt
                # price is snapshotted from the record as it was decremented
                lesson = attempt.unwrap()
                reserved.append(
                    LineItem(
                        lesson_id=lesson_id,
                        quantity=ln.quantity,
                        unit_price=lesson.price,
                    )
                )
        except Exception:
            self._compensate(ctx.order_id, reserved)
            raise

        return Success(
            PlaceOrderContext(ctx.order_id, ctx.command, reserved=tuple(reserved))
        )

    def _persist(self, ctx: PlaceOrderContext) -> Result[Order, BookingError]:
        order = Order(
            order_id=ctx.order_id,
            customer_name=ctx.command.customer_name.strip(),
            customer_phone=ctx.command.customer_phone.strip(),
            items=ctx.reserved,
            created_at=now_utc(),
        )
        try:
            saved = self.deps.orders.append(order)
        except Exception:
            self._compensate(ctx.order_id, ctx.reserved)
            raise

        if isinstance(saved, Failure):
            self._compensate(ctx.order_id, ctx.reserved)
            err = saved.failure()
            if isinstance(err, PersistenceFailed):
                return Failure(err)
            return Failure(PersistenceFailed(f"order could not be stored: {err}"))
        return Success(order)

    def _compensate(self, order_id: OrderId, reserved: Sequence[LineItem]) -> None:
        # newest first; each reserved line is given back exactly once
        for item in reversed(reserved):
            try:
                undone = self.deps.ledger.compensate(item.lesson_id, item.quantity)
            except Exception as exc:  # noqa: BLE001
                self._record_anomaly(order_id, item, f"{type(exc).__name__}: {exc}")
                continue
            if isinstance(undone, Failure):
                self._record_anomaly(order_id, item, str(undone.failure()))

    def _record_anomaly(self, order_id: OrderId, item: LineItem, reason: str) -> None:
        anomaly = LedgerAnomaly(
            order_id=order_id,
            lesson_id=item.lesson_id,
            quantity=item.quantity,
            reason=reason,
            recorded_at=now_utc(),
        )
        logger.bind(
            anomaly="compensation_failed",
            order_id=str(order_id.value),
            lesson_id=item.lesson_id.value,
            quantity=item.quantity,
        ).error(
            f"compensation of {item.quantity} on lesson {item.lesson_id.value} "
            f"failed for order {order_id.value}; ledger may be inconsistent: {reason}"
        )
        self.deps.anomalies.record(anomaly)


# ---- pure helpers ----------------------------------------------------------


def _validate_command(
    cmd: PlaceOrderCommand,
) -> Result[PlaceOrderCommand, BookingError]:
    if not cmd.customer_name.strip():
        return Failure(ValidationFailed("name is required"))
    if not cmd.customer_phone.strip():
        return Failure(ValidationFailed("phone is required"))
    if not cmd.lines:
        return Failure(ValidationFailed("at least one line item is required"))

    for i, ln in enumerate(cmd.lines):
        if not ln.lesson_id.strip():
            return Failure(ValidationFailed(f"lines[{i}].lesson_id is required"))
        if isinstance(ln.quantity, bool) or not isinstance(ln.quantity, int):
            return Failure(ValidationFailed(f"lines[{i}].quantity must be an integer"))
        if ln.quantity <= 0:
            return Failure(ValidationFailed(f"lines[{i}].quantity must be > 0"))

    return Success(cmd)
