"""Collection sinks.

A sink accepts a payload and reports nothing back. The HTTP implementation
posts the payload and never reads the response.
"""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0

# Markers left in URLs that were never filled in
PLACEHOLDER_MARKERS = ("请在此处", "REPLACE_ME", "<", ">")


@runtime_checkable
class Sink(Protocol):
    """Destination for submission payloads. Never returns a status."""

    label: str

    async def deliver(self, payload: dict[str, Any]) -> None: ...


def is_sink_configured(url: str | None) -> bool:
    """Check whether a sink URL has actually been set.

    Args:
        url: Configured URL, possibly empty or a template placeholder

    Returns:
        False for empty or placeholder URLs, True otherwise
    """
    if not url or not url.strip():
        return False
    return not any(marker in url for marker in PLACEHOLDER_MARKERS)


class HttpSink:
    """POSTs payloads to a webhook URL, fire-and-forget.

    The body is JSON sent as ``text/plain`` so browser-oriented collection
    endpoints accept it without a preflight. Status codes and bodies are
    never inspected; transport errors are logged and swallowed.
    """

    def __init__(
        self,
        url: str,
        label: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            url: Webhook URL (empty or placeholder disables delivery)
            label: Short name used in logs ("all", "unique")
            timeout: Request timeout in seconds
            client: Shared client to use instead of one per delivery
        """
        self.url = url
        self.label = label
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return is_sink_configured(self.url)

    async def deliver(self, payload: dict[str, Any]) -> None:
        log = logger.bind(sink=self.label)

        if not self.configured:
            log.warning("sink_not_configured")
            return

        body = json.dumps(payload, ensure_ascii=False)
        headers = {"Content-Type": "text/plain"}

        try:
            if self._client is not None:
                await self._client.post(self.url, content=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    await client.post(self.url, content=body, headers=headers)
        except httpx.TimeoutException:
            log.warning("sink_delivery_timeout")
            return
        except httpx.HTTPError as e:
            log.warning("sink_delivery_error", error=str(e))
            return

        log.info("sink_delivery_sent")
