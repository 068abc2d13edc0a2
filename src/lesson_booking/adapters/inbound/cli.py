from __future__ import annotations

import json
import sys
from typing import Any

from returns.result import Success

from lesson_booking.bootstrap import build_usecases
from lesson_booking.config import Settings
from lesson_booking.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)
from lesson_booking.logger_config import configure_logging


def run_cli(usecase: PlaceOrderUseCase, raw: str) -> int:
    """
    raw: JSON string.
    Example:
      {"name":"Ada","phone":"07700900123",
       "lineItems":[{"lessonId":"lesson-01","qty":1}]}
    """
    try:
        payload = json.loads(raw)
        cmd = _parse_command(payload)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        print(f"invalid_input: {e}")
        return 2

    result = usecase.place_order(cmd)

    if isinstance(result, Success):
        order = result.unwrap()
        print(
            "[ok]",
            {
                "order_id": str(order.order_id.value),
                "lines": [
                    {"lessonId": it.lesson_id.value, "qty": it.quantity}
                    for it in order.items
                ],
                "total": str(order.total().amount),
                "currency": order.total().currency,
            },
        )
        return 0

    err = result.failure()
    print("[ng]", str(err))
    return 1


def _parse_command(payload: dict[str, Any]) -> PlaceOrderCommand:
    lines = [
        PlaceOrderLine(lesson_id=str(x["lessonId"]), quantity=x["qty"])
        for x in payload.get("lineItems", [])
    ]
    return PlaceOrderCommand(
        customer_name=str(payload.get("name", "")),
        customer_phone=str(payload.get("phone", "")),
        lines=lines,
    )


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    if not argv:
        print("usage: lesson-booking-order '<json>'")
        return 2

    settings = Settings()
    configure_logging(settings)
    usecases = build_usecases(settings)
    try:
        return run_cli(usecases.place_order, argv[0])
    finally:
        usecases.handle.close()


if __name__ == "__main__":
    raise SystemExit(main())
