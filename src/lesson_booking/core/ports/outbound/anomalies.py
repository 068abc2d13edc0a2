from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import BookingError


class AnomalyRecorder(Protocol):
    def record(self, anomaly: LedgerAnomaly) -> None:
        """Must not raise; a recorder that cannot store the anomaly logs it instead."""
        ...

    def list_all(self) -> Result[Sequence[LedgerAnomaly], BookingError]: ...
