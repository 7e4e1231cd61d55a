"""Pytest configuration for errorscrub tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from errorscrub.hooks import DetachedHost  # noqa: E402


@pytest.fixture(autouse=True)
def development_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ERRORSCRUB_ENV", raising=False)
    monkeypatch.delenv("ERRORSCRUB_PURGE", raising=False)
    monkeypatch.delenv("ERRORSCRUB_SUBSCRIBERS", raising=False)


@pytest.fixture
def host() -> DetachedHost:
    return DetachedHost()
