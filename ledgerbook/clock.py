"""
Timestamps and Transaction Ids

Transaction records take their timestamp from a Clock and their id from a
TransactionIdGenerator. Both are owned by the engine instance.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional


ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"


class Clock(ABC):
    """Source of transaction timestamps"""

    @abstractmethod
    def now(self) -> datetime:
        """Current local time"""
        pass

    def now_iso(self) -> str:
        """Current local time as YYYY-MM-DDTHH:MM:SS, no offset, no fraction"""
        return self.now().strftime(ISO_FORMAT)


class SystemClock(Clock):
    """Wall clock in local time"""

    def now(self) -> datetime:
        return datetime.now()


class TransactionIdGenerator:
    """
    Monotonic counter rendered as a zero-padded decimal string.

    The first id handed out is start + 1. Ids are never reused within one
    generator; seed() only moves the counter forward.
    """

    def __init__(self, width: int = 10, start: int = 0):
        if width < 1:
            raise ValueError("Transaction id width must be at least 1")
        if start < 0:
            raise ValueError("Transaction id counter cannot start below zero")
        self.width = width
        self._counter = start

    @property
    def last_issued(self) -> int:
        return self._counter

    def next_id(self) -> str:
        self._counter += 1
        return str(self._counter).zfill(self.width)

    def seed(self, issued: Iterable[Optional[int]]) -> int:
        """
        Advance the counter past every already-issued numeric id.

        None entries (ids that were not decimal strings) are ignored.
        Returns the new counter value.
        """
        highest = max((value for value in issued if value is not None), default=0)
        if highest > self._counter:
            self._counter = highest
        return self._counter
