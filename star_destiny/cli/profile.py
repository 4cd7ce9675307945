"""Visitor profile loading for the Star Destiny CLI.

The profile stands in for the organizational identity provider: it supplies
the optional name, organization units and role attached to a submission.

Supports configuration from:
1. Config file (~/.star_destiny/config.yaml, ``profile`` section)
2. CLI arguments (override the file field by field)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from star_destiny.models import Enrichment

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path.home() / ".star_destiny" / "config.yaml"


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load the CLI config file.

    Args:
        path: Config file path. Defaults to $STAR_DESTINY_CONFIG or
            ~/.star_destiny/config.yaml.

    Returns:
        Configuration dictionary, empty when the file is missing or unreadable.
    """
    if path is None:
        env_path = os.environ.get("STAR_DESTINY_CONFIG")
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("cli_config_unreadable", path=str(path), error=str(e))
        return {}

    return data if isinstance(data, dict) else {}


def resolve_enrichment(
    config: dict[str, Any],
    name: str | None = None,
    units: list[str] | None = None,
    role: str | None = None,
) -> Enrichment | None:
    """Combine the config profile with CLI overrides.

    Args:
        config: Loaded CLI config
        name: --name option
        units: --unit options
        role: --role option

    Returns:
        Enrichment, or None when neither source provides anything.
    """
    profile = config.get("profile") or {}
    if not isinstance(profile, dict):
        profile = {}

    try:
        enrichment = Enrichment.model_validate(profile)
    except ValidationError as e:
        logger.warning("cli_profile_invalid", error_count=e.error_count())
        enrichment = Enrichment()

    overrides: dict[str, Any] = {}
    if name:
        overrides["name"] = name
    if units:
        overrides["organization_units"] = list(units)
    if role:
        overrides["role"] = role
    if overrides:
        enrichment = enrichment.model_copy(update=overrides)

    return None if enrichment.is_empty else enrichment
