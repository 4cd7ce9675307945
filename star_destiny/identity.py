"""Device identity and the unique-channel dedup flag."""

from __future__ import annotations

import secrets
import string
import time

import structlog

from star_destiny.config import DEDUP_VERSION_DEFAULT
from star_destiny.storage import KeyValueStore

logger = structlog.get_logger()

DEVICE_ID_KEY = "star_destiny_device_uuid"
DEDUP_KEY_PREFIX = "star_destiny_synced_unique_"
DEDUP_FLAG_VALUE = "true"

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_device_id() -> str:
    """Create a new device token: ``dev_<base36 ms>_<5 random base36 chars>``.

    Not a security token; collisions only blur unique-channel counts.
    """
    timestamp = to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"dev_{timestamp}_{suffix}"


class DeviceIdentityStore:
    """Owns the device token and the dedup flag.

    The token is created the first time it is asked for and reused forever
    after. The dedup flag is one-way: it can be set, never cleared, except by
    wiping the underlying store.
    """

    def __init__(
        self, store: KeyValueStore, dedup_version: str = DEDUP_VERSION_DEFAULT
    ) -> None:
        self._store = store
        self._dedup_version = dedup_version

    @property
    def dedup_key(self) -> str:
        return f"{DEDUP_KEY_PREFIX}{self._dedup_version}"

    def get_device_id(self) -> str | None:
        """Return the stored token without creating one."""
        return self._store.get(DEVICE_ID_KEY) or None

    def get_or_create_device_id(self) -> str:
        device_id = self.get_device_id()
        if device_id:
            return device_id

        device_id = generate_device_id()
        self._store.set(DEVICE_ID_KEY, device_id)
        logger.info("device_id_created", device_id=device_id)
        return device_id

    def has_unique_submission(self) -> bool:
        return bool(self._store.get(self.dedup_key))

    def mark_unique_submission(self) -> None:
        self._store.set(self.dedup_key, DEDUP_FLAG_VALUE)
        logger.debug("dedup_flag_set", key=self.dedup_key)
