"""Ready-made subscribers.

Payload dicts are built fresh for every report and shared by all subscribers
of that report, so anything kept past the call is copied first.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from .logging import StructuredLogger, get_logger


class RecordingSubscriber:
    """Keep a copy of every delivered payload (handy in tests and REPLs)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._payloads: list[dict[str, Any]] = []

    def __call__(self, payload: Mapping[str, Any]) -> None:
        with self._lock:
            self._payloads.append(dict(payload))

    @property
    def payloads(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._payloads)

    @property
    def last(self) -> dict[str, Any] | None:
        with self._lock:
            return self._payloads[-1] if self._payloads else None

    def clear(self) -> None:
        with self._lock:
            self._payloads.clear()


class LoggingSubscriber:
    """Write each payload through the structured logger at ERROR level."""

    def __init__(self, logger: StructuredLogger | None = None, message: str = "captured error") -> None:
        self._logger = logger
        self._message = message

    def __call__(self, payload: Mapping[str, Any]) -> None:
        logger = self._logger or get_logger()
        name = payload.get("name")
        # payload keys such as "name"/"message" collide with LogRecord fields
        logger.log_error(
            f"{self._message}: {name}: {payload.get('message')}",
            error_type=name,
            payload=dict(payload),
        )


__all__ = ["RecordingSubscriber", "LoggingSubscriber"]
