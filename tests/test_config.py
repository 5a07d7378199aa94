"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from resourcebridge import BridgeSettings
from resourcebridge.config import DEFAULT_API_BASE_URL, DEFAULT_HTTP_TIMEOUT


def test_defaults_from_empty_environment() -> None:
    settings = BridgeSettings.from_env({})

    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.token == ""
    assert settings.http_timeout == DEFAULT_HTTP_TIMEOUT
    assert settings.session_timeout is None


def test_values_from_environment() -> None:
    settings = BridgeSettings.from_env(
        {
            "RESOURCEBRIDGE_API_URL": "https://control.example",
            "RESOURCEBRIDGE_TOKEN": "tok",
            "RESOURCEBRIDGE_HTTP_TIMEOUT": "2.5",
            "RESOURCEBRIDGE_SESSION_TIMEOUT": "60",
        }
    )

    assert settings == BridgeSettings("https://control.example", "tok", 2.5, 60.0)


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEBRIDGE_TOKEN", "from-env")

    assert BridgeSettings.from_env().token == "from-env"


def test_invalid_timeout_is_rejected() -> None:
    with pytest.raises(ValueError, match="RESOURCEBRIDGE_SESSION_TIMEOUT"):
        BridgeSettings.from_env({"RESOURCEBRIDGE_SESSION_TIMEOUT": "soon"})
