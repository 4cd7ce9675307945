"""Visit flow: resolve a birth date, remember it, relay it."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

import structlog

from star_destiny.catalog import Mansion, MansionCatalog, get_catalog
from star_destiny.config import Settings
from star_destiny.delivery.pipeline import SubmissionPipeline
from star_destiny.delivery.sinks import HttpSink, Sink
from star_destiny.exceptions import UnknownMansionError
from star_destiny.identity import DeviceIdentityStore
from star_destiny.models import Enrichment, UserRecord
from star_destiny.records import RecordStore
from star_destiny.resolver import resolve, validate_birth_date
from star_destiny.storage import JsonFileStore, KeyValueStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class Revelation:
    """A stored record together with the mansion it resolved to."""

    record: UserRecord
    mansion: Mansion


class DestinyService:
    """Coordinates resolver, record store and submission pipeline."""

    def __init__(
        self,
        catalog: MansionCatalog,
        records: RecordStore,
        pipeline: SubmissionPipeline,
        identity: DeviceIdentityStore,
    ) -> None:
        self.catalog = catalog
        self.records = records
        self.pipeline = pipeline
        self.identity = identity

    def reveal(
        self,
        birth_date: str,
        enrichment: Enrichment | None = None,
        today: date | None = None,
    ) -> Revelation:
        """Resolve a birth date, persist the result and relay it.

        Validation happens first: an invalid date raises InvalidDateError
        before anything is stored or sent. Delivery runs in the background;
        this returns as soon as the record is saved. Must be called from a
        running event loop; without one, RuntimeError is raised before the
        record is saved.

        Args:
            birth_date: ``YYYY-MM-DD`` date string
            enrichment: Optional organizational identity of the visitor
            today: Reference date for the year window (defaults to today)

        Returns:
            The new record and its mansion
        """
        validated = validate_birth_date(birth_date, today=today)
        mansion = resolve(validated, self.catalog)
        # Raises outside an event loop, before anything is stored
        asyncio.get_running_loop()

        record = UserRecord(
            birth_date=validated.isoformat(),
            constellation_id=mansion.id,
            timestamp=time.time_ns() // 1_000_000,
        )
        if enrichment is not None and not enrichment.is_empty:
            record = record.model_copy(
                update={
                    "name": enrichment.name,
                    "organization_units": list(enrichment.organization_units),
                    "role": enrichment.role,
                }
            )

        self.records.save(record)
        logger.info(
            "mansion_revealed",
            birth_date=record.birth_date,
            constellation_id=mansion.id,
        )

        self.pipeline.submit(record, mansion.full_name)
        return Revelation(record=record, mansion=mansion)

    def restore(self) -> Revelation | None:
        """Return the last revelation on this device, if any.

        A stored record pointing outside the catalog is treated like any
        other corrupt entry: discarded and reported as absent.
        """
        record = self.records.load_last()
        if record is None:
            return None

        try:
            mansion = self.catalog.get(record.constellation_id)
        except UnknownMansionError:
            logger.warning(
                "stored_record_discarded",
                constellation_id=record.constellation_id,
            )
            self.records.clear()
            return None

        return Revelation(record=record, mansion=mansion)

    def forget(self) -> None:
        """Drop the stored record so the next visit prompts again.

        The device token and dedup flag are kept.
        """
        self.records.clear()
        logger.info("stored_record_cleared")


def build_service(
    settings: Settings,
    store: KeyValueStore | None = None,
    all_sink: Sink | None = None,
    unique_sink: Sink | None = None,
    catalog: MansionCatalog | None = None,
) -> DestinyService:
    """Wire a DestinyService from settings.

    Args:
        settings: Application settings
        store: Key-value store (defaults to the JSON state file)
        all_sink: Override for the all-observations sink
        unique_sink: Override for the unique-observations sink
        catalog: Override for the packaged catalog

    Returns:
        Ready-to-use service
    """
    if store is None:
        store = JsonFileStore(settings.state_path)
    if all_sink is None:
        all_sink = HttpSink(
            settings.all_sink_url, label="all", timeout=settings.sink_timeout_seconds
        )
    if unique_sink is None:
        unique_sink = HttpSink(
            settings.unique_sink_url,
            label="unique",
            timeout=settings.sink_timeout_seconds,
        )

    identity = DeviceIdentityStore(store, dedup_version=settings.dedup_version)
    pipeline = SubmissionPipeline(
        all_sink=all_sink,
        unique_sink=unique_sink,
        identity=identity,
        client_agent=settings.client_agent,
        unspecified_name=settings.unspecified_name,
        tz=ZoneInfo(settings.timezone),
    )
    return DestinyService(
        catalog=catalog or get_catalog(),
        records=RecordStore(store),
        pipeline=pipeline,
        identity=identity,
    )
