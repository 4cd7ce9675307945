"""Shared fixtures for Star Destiny tests."""

import asyncio
from datetime import timedelta, timezone
from typing import Any

import httpx
import pytest

from star_destiny.catalog import MansionCatalog, get_catalog
from star_destiny.delivery.pipeline import SubmissionPipeline
from star_destiny.identity import DeviceIdentityStore
from star_destiny.models import UserRecord
from star_destiny.storage import MemoryStore

CST = timezone(timedelta(hours=8))


class RecordingSink:
    """Sink double that remembers every payload it was given."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.payloads: list[dict[str, Any]] = []

    async def deliver(self, payload: dict[str, Any]) -> None:
        self.payloads.append(payload)


class FailingSink(RecordingSink):
    """Sink double whose deliveries always fail at the transport level."""

    async def deliver(self, payload: dict[str, Any]) -> None:
        self.payloads.append(payload)
        raise httpx.ConnectError("connection refused")


class GatedSink(RecordingSink):
    """Sink double that blocks until its gate is opened."""

    def __init__(self, label: str) -> None:
        super().__init__(label)
        self.gate = asyncio.Event()

    async def deliver(self, payload: dict[str, Any]) -> None:
        self.payloads.append(payload)
        await self.gate.wait()


@pytest.fixture
def catalog() -> MansionCatalog:
    return get_catalog()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def identity(store: MemoryStore) -> DeviceIdentityStore:
    return DeviceIdentityStore(store, dedup_version="v_test")


@pytest.fixture
def all_sink() -> RecordingSink:
    return RecordingSink("all")


@pytest.fixture
def unique_sink() -> RecordingSink:
    return RecordingSink("unique")


@pytest.fixture
def pipeline(
    all_sink: RecordingSink,
    unique_sink: RecordingSink,
    identity: DeviceIdentityStore,
) -> SubmissionPipeline:
    return SubmissionPipeline(
        all_sink=all_sink,
        unique_sink=unique_sink,
        identity=identity,
        client_agent="pytest-agent",
        tz=CST,
    )


@pytest.fixture
def sample_record() -> UserRecord:
    # 2024-03-01 00:00:00 +08:00
    return UserRecord(
        birth_date="1992-02-29",
        constellation_id=10,
        timestamp=1709222400000,
    )


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink("unique")


@pytest.fixture
def gated_sink() -> GatedSink:
    return GatedSink("unique")
