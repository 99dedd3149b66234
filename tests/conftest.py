"""Shared pytest fixtures and fakes."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from catchlog.errors import RemoteError, StorageError
from catchlog.storage import CatchRecordInput, InMemoryStorage, Location
from catchlog.sync.remote import RemoteBackend


class FakeBackend(RemoteBackend):
    """Records inserts; rejects ids listed in ``reject``."""

    def __init__(self, reject: Optional[dict[str, str]] = None, species: Optional[list] = None):
        self.reject = reject or {}
        self.species = species or []
        self.inserted: list[dict[str, Any]] = []
        self.attempted: list[str] = []
        self.species_calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.delay = 0.0

    async def insert_catch(self, wire: dict[str, Any]) -> None:
        self.attempted.append(wire['id'])
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if wire['id'] in self.reject:
            raise RemoteError(self.reject[wire['id']])
        self.inserted.append(wire)

    async def fetch_species(self) -> list[dict[str, Any]]:
        self.species_calls += 1
        return list(self.species)


class FlakyStorage(InMemoryStorage):
    """In-memory storage that can be told to fail reads or writes."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    def get(self, container, key):
        if self.fail_reads:
            raise StorageError("disk unavailable")
        return super().get(container, key)

    def items(self, container):
        if self.fail_reads:
            raise StorageError("disk unavailable")
        return super().items(container)

    def put(self, container, key, value):
        if self.fail_writes:
            raise StorageError("disk full")
        super().put(container, key, value)


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 6, 1, 6, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_input(species: str = "Largemouth Bass", lat: float = 44.97, lng: float = -93.26, **extra) -> CatchRecordInput:
    return CatchRecordInput(species=species, location=Location(latitude=lat, longitude=lng), **extra)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def flaky_storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
