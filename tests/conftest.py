"""Shared fixtures for the ledgerbook test suite"""

from datetime import datetime, timedelta

import pytest

from ledgerbook.clock import Clock, TransactionIdGenerator
from ledgerbook.engine import LedgerEngine
from ledgerbook.storage import InMemoryStorage


class FixedClock(Clock):
    """Deterministic clock advancing one second per reading"""

    def __init__(self, start=datetime(2024, 1, 15, 9, 30, 0), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def now(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


@pytest.fixture
def fixed_clock():
    return FixedClock()


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def engine(memory_storage, fixed_clock):
    ledger = LedgerEngine(memory_storage, clock=fixed_clock, id_generator=TransactionIdGenerator())
    ledger.open()
    return ledger
