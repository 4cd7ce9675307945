"""Dual-channel submission pipeline.

Every submission goes to the all-observations sink. The unique-observations
sink receives at most one submission per device per dedup version: the dedup
flag is set before that delivery is scheduled and is never unset.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

import structlog

from star_destiny.config import UNSPECIFIED_NAME_DEFAULT
from star_destiny.delivery.sinks import Sink
from star_destiny.identity import DeviceIdentityStore
from star_destiny.models import UserRecord

logger = structlog.get_logger()

DEFAULT_TIMEZONE = "Asia/Shanghai"


def format_timestamp(timestamp_ms: int, tz: tzinfo) -> str:
    """Render epoch milliseconds as ``YYYY/M/D HH:MM:SS`` local time."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz)
    return f"{moment.year}/{moment.month}/{moment.day} {moment:%H:%M:%S}"


class SubmissionPipeline:
    """Builds payloads and dispatches them to both sinks without blocking."""

    def __init__(
        self,
        all_sink: Sink,
        unique_sink: Sink,
        identity: DeviceIdentityStore,
        client_agent: str,
        unspecified_name: str = UNSPECIFIED_NAME_DEFAULT,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            all_sink: Receives every submission
            unique_sink: Receives the first submission of this device only
            identity: Device token and dedup flag owner
            client_agent: Client metadata for the device descriptor
            unspecified_name: userName used when the record has no name
            tz: Timezone for the human-readable timestamp
        """
        self._all_sink = all_sink
        self._unique_sink = unique_sink
        self._identity = identity
        self._client_agent = client_agent
        self._unspecified_name = unspecified_name
        self._tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
        # Detached tasks, held until done
        self._tasks: set[asyncio.Task] = set()

    def build_payload(
        self, record: UserRecord, resolved_full_name: str
    ) -> dict[str, str]:
        device_id = self._identity.get_or_create_device_id()
        return {
            "timestamp": format_timestamp(record.timestamp, self._tz),
            "birthDate": record.birth_date,
            "constellation": resolved_full_name,
            "device": f"[ID:{device_id}] {self._client_agent}",
            "userName": record.name or self._unspecified_name,
        }

    def submit(self, record: UserRecord, resolved_full_name: str) -> None:
        """Relay a record to both sinks and return immediately.

        Must be called from a running event loop. Deliveries run as detached
        tasks; their outcome is only ever logged.
        """
        payload = self.build_payload(record, resolved_full_name)
        log = logger.bind(constellation=resolved_full_name)

        self._spawn(self._all_sink, payload)

        if self._identity.has_unique_submission():
            log.debug("unique_submission_skipped", key=self._identity.dedup_key)
            return

        # Eligibility is consumed here, before any network activity
        self._identity.mark_unique_submission()
        log.info("unique_submission_scheduled")
        self._spawn(self._unique_sink, payload)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every delivery started so far. Never cancels."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, sink: Sink, payload: dict[str, Any]) -> None:
        task = asyncio.get_running_loop().create_task(
            self._deliver(sink, payload), name=f"deliver-{sink.label}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, sink: Sink, payload: dict[str, Any]) -> None:
        try:
            await sink.deliver(payload)
        except Exception as e:
            logger.error(
                "sink_delivery_failed",
                sink=sink.label,
                error=str(e),
                error_type=type(e).__name__,
            )
