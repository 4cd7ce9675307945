import platform
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from star_destiny import __version__

# Bump to reset the unique-observations population without touching other state
DEDUP_VERSION_DEFAULT = "v5_final"
UNSPECIFIED_NAME_DEFAULT = "unspecified"

logger = structlog.get_logger()


def default_client_agent() -> str:
    """Describe this client the way a browser user agent would."""
    return (
        f"star-destiny/{__version__} "
        f"({platform.system()} {platform.release()}; "
        f"Python {platform.python_version()})"
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Collection sinks
    all_sink_url: str = Field(
        default="",
        alias="STAR_DESTINY_ALL_SINK_URL",
        description="Webhook receiving every submission (no dedup)",
    )
    unique_sink_url: str = Field(
        default="",
        alias="STAR_DESTINY_UNIQUE_SINK_URL",
        description="Webhook receiving at most one submission per device",
    )
    sink_timeout_seconds: float = Field(
        default=10.0,
        alias="STAR_DESTINY_SINK_TIMEOUT_SECONDS",
        description="Per-request timeout for sink deliveries",
    )

    # Local state
    state_path: Path = Field(
        default=Path.home() / ".star_destiny" / "state.json",
        alias="STAR_DESTINY_STATE_PATH",
        description="JSON file holding the device token, dedup flag and last record",
    )
    dedup_version: str = Field(
        default=DEDUP_VERSION_DEFAULT,
        alias="STAR_DESTINY_DEDUP_VERSION",
        description=(
            "Suffix of the unique-channel dedup flag key. Changing it lets every "
            "device submit to the unique sink once more."
        ),
    )

    # Payload
    unspecified_name: str = Field(
        default=UNSPECIFIED_NAME_DEFAULT,
        alias="STAR_DESTINY_UNSPECIFIED_NAME",
        description="userName sent when no enrichment name is available",
    )
    timezone: str = Field(
        default="Asia/Shanghai",
        alias="STAR_DESTINY_TIMEZONE",
        description="Timezone used to render the payload timestamp",
    )
    client_agent: str = Field(
        default_factory=default_client_agent,
        alias="STAR_DESTINY_CLIENT_AGENT",
        description="Client metadata appended to the device descriptor",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are read from environment variables and .env file once,
    then cached for the lifetime of the process.
    """
    return Settings()


def warn_if_sinks_unconfigured(settings: Settings) -> None:
    """Log a warning for every sink URL that is empty or a placeholder.

    Deliveries to an unconfigured sink are skipped, so this is only a
    startup hint for operators.
    """
    # Deferred: the delivery package imports this module
    from star_destiny.delivery.sinks import is_sink_configured

    if not is_sink_configured(settings.all_sink_url):
        logger.warning(
            "sink_url_unset",
            sink="all",
            env="STAR_DESTINY_ALL_SINK_URL",
        )
    if not is_sink_configured(settings.unique_sink_url):
        logger.warning(
            "sink_url_unset",
            sink="unique",
            env="STAR_DESTINY_UNIQUE_SINK_URL",
        )
