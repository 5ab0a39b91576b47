"""Tests for the command-line entry point."""

import os

from modo import main as entry
from modo.config import settings


def test_cli_overrides_reach_the_environment(monkeypatch) -> None:
    """uvicorn's reload worker rebuilds settings from the environment, so overrides go there too."""

    calls = []
    monkeypatch.setattr(entry, "run_api", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(entry, "_init_logging", lambda level: None)
    monkeypatch.setattr(settings, "BACKEND", settings.BACKEND)
    monkeypatch.setattr(settings, "LOG_LEVEL", settings.LOG_LEVEL)
    monkeypatch.setenv("BACKEND", "openai")
    monkeypatch.setenv("LOG_LEVEL", "info")

    entry.main(["--backend", "anthropic", "--log-level", "warning"])

    assert os.environ["BACKEND"] == "anthropic"
    assert os.environ["LOG_LEVEL"] == "warning"
    assert settings.BACKEND == "anthropic"
    assert len(calls) == 1 and calls[0]["port"] == settings.API_PORT
