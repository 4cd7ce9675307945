"""Unit tests for Settings and startup checks."""

from pathlib import Path

import pytest
import structlog

from star_destiny import __version__
from star_destiny.config import (
    DEDUP_VERSION_DEFAULT,
    Settings,
    default_client_agent,
    get_settings,
    warn_if_sinks_unconfigured,
)

ENV_VARS = [
    "STAR_DESTINY_ALL_SINK_URL",
    "STAR_DESTINY_UNIQUE_SINK_URL",
    "STAR_DESTINY_SINK_TIMEOUT_SECONDS",
    "STAR_DESTINY_STATE_PATH",
    "STAR_DESTINY_DEDUP_VERSION",
    "STAR_DESTINY_UNSPECIFIED_NAME",
    "STAR_DESTINY_TIMEZONE",
    "STAR_DESTINY_CLIENT_AGENT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.all_sink_url == ""
        assert settings.unique_sink_url == ""
        assert settings.sink_timeout_seconds == 10.0
        assert settings.state_path == Path.home() / ".star_destiny" / "state.json"
        assert settings.dedup_version == DEDUP_VERSION_DEFAULT == "v5_final"
        assert settings.unspecified_name == "unspecified"
        assert settings.timezone == "Asia/Shanghai"
        assert settings.client_agent.startswith(f"star-destiny/{__version__} ")

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("STAR_DESTINY_ALL_SINK_URL", "https://a.example.com/hook")
        monkeypatch.setenv("STAR_DESTINY_UNIQUE_SINK_URL", "https://u.example.com/hook")
        monkeypatch.setenv("STAR_DESTINY_SINK_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("STAR_DESTINY_STATE_PATH", "/tmp/sd/state.json")
        monkeypatch.setenv("STAR_DESTINY_DEDUP_VERSION", "v6")

        settings = Settings()
        assert settings.all_sink_url == "https://a.example.com/hook"
        assert settings.unique_sink_url == "https://u.example.com/hook"
        assert settings.sink_timeout_seconds == 2.5
        assert settings.state_path == Path("/tmp/sd/state.json")
        assert settings.dedup_version == "v6"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text(
            "STAR_DESTINY_DEDUP_VERSION=from_dotenv\n", encoding="utf-8"
        )
        assert Settings().dedup_version == "from_dotenv"

    def test_field_names_accepted(self):
        settings = Settings(dedup_version="v7", timezone="UTC")
        assert settings.dedup_version == "v7"
        assert settings.timezone == "UTC"

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


def test_default_client_agent():
    agent = default_client_agent()
    assert agent.startswith(f"star-destiny/{__version__} (")
    assert "Python" in agent


class TestWarnIfSinksUnconfigured:
    def test_warns_for_each_empty_sink(self):
        with structlog.testing.capture_logs() as logs:
            warn_if_sinks_unconfigured(Settings())

        assert [log["sink"] for log in logs] == ["all", "unique"]
        assert all(log["event"] == "sink_url_unset" for log in logs)
        assert all(log["log_level"] == "warning" for log in logs)

    def test_silent_when_configured(self):
        settings = Settings(
            all_sink_url="https://a.example.com/hook",
            unique_sink_url="https://u.example.com/hook",
        )
        with structlog.testing.capture_logs() as logs:
            warn_if_sinks_unconfigured(settings)
        assert logs == []

    @pytest.mark.parametrize(
        "url", ["REPLACE_ME", "https://<your-webhook>", "请在此处粘贴 Webhook URL", "  "]
    )
    def test_warns_for_placeholder_urls(self, url):
        settings = Settings(
            all_sink_url=url,
            unique_sink_url="https://u.example.com/hook",
        )
        with structlog.testing.capture_logs() as logs:
            warn_if_sinks_unconfigured(settings)
        assert [log["sink"] for log in logs] == ["all"]
