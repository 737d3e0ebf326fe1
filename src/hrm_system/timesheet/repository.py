from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import Holiday


class HolidayRepository(Protocol):
    def list_in_range(self, *, start: date, end: date, country: str) -> Sequence[Holiday]:
        raise NotImplementedError

    def insert_many(self, holidays: Sequence[Holiday]) -> int:
        """Skips dates already stored; returns inserted count."""

        raise NotImplementedError
