from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Sequence

from returns.result import Result, Success

from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import BookingError
from lesson_booking.core.ports.outbound.anomalies import AnomalyRecorder


@dataclass
class InMemoryAnomalyLog(AnomalyRecorder):
    _records: List[LedgerAnomaly] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, anomaly: LedgerAnomaly) -> None:
        with self._lock:
            self._records.append(anomaly)

    def list_all(self) -> Result[Sequence[LedgerAnomaly], BookingError]:
        with self._lock:
            return Success(tuple(self._records))
