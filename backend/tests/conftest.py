"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolate_settings_sources(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's dealarr.json, .env or DEALARR_* variables out of tests.

    Settings read the JSON file and .env from the working directory, so every
    test runs from its own empty temporary directory.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DEALARR_SETTINGS_FILE", raising=False)
    for name in ("DEALARR_PARALLELISM", "DEALARR_LOG_LEVEL", "DEALARR_ENABLED_STORES"):
        monkeypatch.delenv(name, raising=False)
