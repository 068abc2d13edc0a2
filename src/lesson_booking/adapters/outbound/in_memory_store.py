from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict

from loguru import logger
from returns.result import Failure, Result, Success

from lesson_booking.core.domain.model.errors import BookingError, StoreUnavailable
from lesson_booking.core.domain.model.lesson import Lesson
from lesson_booking.core.domain.model.order import Order


@dataclass
class InMemoryStoreHandle:
    """
    Process-local storage shared by the in-memory stores.

    Every read and write goes through ``lock``; a conditional update done
    while holding it is a single indivisible step for all other threads.
    """

    lessons: Dict[str, Lesson] = field(default_factory=dict)
    orders: Dict[str, Order] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _ready: bool = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def connect(self) -> Result[None, BookingError]:
        self._ready = True
        logger.info("in-memory store ready")
        return Success(None)

    def close(self) -> None:
        self._ready = False

    def ensure_ready(self) -> Result[None, BookingError]:
        if not self._ready:
            return Failure(StoreUnavailable("store is not ready"))
        return Success(None)
