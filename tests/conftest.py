"""Shared test configuration."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ASSETSYNC_* variables of the developer shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("ASSETSYNC_"):
            monkeypatch.delenv(name)
