"""
Concurrent bookings against the in-memory store, using real threads
"""

import random
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest
from returns.result import Failure, Success

from lesson_booking.core.domain.model.errors import InsufficientCapacity
from lesson_booking.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
)


def _command(*lines):
    return PlaceOrderCommand(
        customer_name="Racer",
        customer_phone="0123",
        lines=tuple(PlaceOrderLine(lesson_id=lid, quantity=qty) for lid, qty in lines),
    )


def _run_together(service, commands):
    barrier = threading.Barrier(len(commands))

    def _place(cmd):
        barrier.wait()
        return service.place_order(cmd)

    with ThreadPoolExecutor(max_workers=len(commands)) as pool:
        return list(pool.map(_place, commands))


class TestConcurrentBookings:
    @pytest.mark.parametrize("attempt", range(20))
    def test_two_orders_for_three_of_five(self, make_lesson, service, orders, spaces_of, attempt):
        """Exactly one of two racing 3-space orders wins; 2 spaces remain"""
        make_lesson("L1", spaces=5)

        results = _run_together(service, [_command(("L1", 3)), _command(("L1", 3))])

        successes = [r for r in results if isinstance(r, Success)]
        failures = [r for r in results if isinstance(r, Failure)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0].failure(), InsufficientCapacity)
        assert spaces_of("L1") == 2
        assert len(orders.list_all().unwrap()) == 1

    def test_many_single_unit_orders_never_oversell(self, make_lesson, service, orders, spaces_of):
        make_lesson("L1", spaces=10)

        results = _run_together(service, [_command(("L1", 1)) for _ in range(40)])

        assert sum(isinstance(r, Success) for r in results) == 10
        assert spaces_of("L1") == 0
        assert sum(o.items[0].quantity for o in orders.list_all().unwrap()) == 10

    def test_mixed_multi_line_orders_keep_the_ledger_balanced(self, make_lesson, service, orders, spaces_of):
        capacity = {"L1": 6, "L2": 4, "L3": 8}
        for lid, spaces in capacity.items():
            make_lesson(lid, spaces=spaces)

        rng = random.Random(1234)
        commands = []
        for _ in range(32):
            picked = rng.sample(sorted(capacity), k=rng.randint(1, 3))
            commands.append(_command(*((lid, rng.randint(1, 3)) for lid in picked)))

        _run_together(service, commands)

        committed = Counter()
        for order in orders.list_all().unwrap():
            for item in order.items:
                committed[item.lesson_id.value] += item.quantity

        for lid, original in capacity.items():
            assert spaces_of(lid) >= 0
            assert committed[lid] <= original
            assert spaces_of(lid) == original - committed[lid]
