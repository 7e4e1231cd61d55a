"""Reporter instance: subscriber registry, lifecycle and the report pipeline.

Pipeline for ``report(error, metadata)``:

1. read every available error property;
2. the payload is sensitive if any stringified property is sensitive;
3. ``purge="strict"``: a sensitive payload is dropped for everyone;
   ``purge="loose"``: every property is sanitized (not only the offending one);
   ``purge=False``: raw values are delivered regardless;
4. metadata is merged over the properties and the payload goes to each
   subscriber in subscription order.

With no subscribers the pipeline returns before any detection work. A
subscriber that raises aborts delivery to the subscribers after it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from . import hooks
from .config import ReporterOptions, load_options
from .detectors import DEFAULT_DETECTORS, DetectorSet
from .errors import LifecycleError, describe_type, ensure
from .hooks import HookHost
from .logging import StructuredLogger, get_logger
from .probes import ambient_global, available_error_properties, is_error_like, read_error_property
from .wrapping import CallWrappingMixin

Payload = dict[str, Any]
Subscriber = Callable[[Payload], Any]
Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class Subscription:
    handler: Subscriber


@dataclass
class ReporterState:
    subscriptions: list[Subscription] = field(default_factory=list)
    subscriber_count: int = 0
    alive: bool = True

    @property
    def subscribers(self) -> list[Subscriber]:
        return [entry.handler for entry in self.subscriptions]


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


class Reporter(CallWrappingMixin):
    """Captures errors, filters sensitive content and fans payloads out.

    Usage::

        reporter = Reporter({"purge": "loose"})
        unsubscribe = reporter.subscribe(print)
        reporter.try_immediate(risky_call, 1, 2)
        reporter.bind_to_global()
    """

    def __init__(
        self,
        options: Mapping[str, Any] | ReporterOptions | None = None,
        *,
        detectors: DetectorSet = DEFAULT_DETECTORS,
        properties: Callable[[], tuple[str, ...]] = available_error_properties,
        host: HookHost | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._options = ReporterOptions.merge(options)
        self.detectors = detectors
        self._properties = properties
        self._host = host
        self._explicit_logger = logger
        self._lock = threading.RLock()
        self.state = ReporterState()

    @property
    def options(self) -> ReporterOptions:
        return self._options

    @classmethod
    def from_config_path(cls, config_path: str | Path, **kwargs: Any) -> Reporter:
        return cls(load_options(config_path), **kwargs)

    # ── Detection (class level) ──────────────────────────────────

    @classmethod
    def is_sensitive(cls, text: str) -> bool:
        return DEFAULT_DETECTORS.is_sensitive(text)

    @classmethod
    def sanitize(cls, text: str) -> str:
        return DEFAULT_DETECTORS.sanitize(text)

    # ── Lifecycle ────────────────────────────────────────────────

    @property
    def is_alive(self) -> bool:
        return self.state.alive

    @property
    def subscriber_count(self) -> int:
        return self.state.subscriber_count

    @property
    def host(self) -> HookHost:
        return self._host if self._host is not None else ambient_global()

    @property
    def _log(self) -> StructuredLogger:
        return self._explicit_logger or get_logger()

    def _ensure_alive(self, operation: str) -> None:
        ensure(
            self.state.alive,
            f"Cannot {operation} using a terminated reporter.",
            LifecycleError,
        )

    def terminate(self) -> None:
        """Mark the reporter dead and drop every subscriber. Idempotent."""
        with self._lock:
            self.state = ReporterState(alive=False)
        self._log.log_operation("terminate")

    # ── Subscribers ──────────────────────────────────────────────

    def subscribe(self, handler: Subscriber) -> Unsubscribe:
        self._ensure_alive("subscribe")
        ensure(
            callable(handler),
            f"Subscriber must be callable, instead got {describe_type(handler)}",
        )
        subscription = Subscription(handler)
        with self._lock:
            self.state.subscriptions.append(subscription)
            self.state.subscriber_count += 1
            count = self.state.subscriber_count
        self._log.log_operation("subscribe", subscriber_count=count)

        def unsubscribe() -> None:
            with self._lock:
                entries = self.state.subscriptions
                for index, entry in enumerate(entries):
                    if entry is subscription:
                        del entries[index]
                        self.state.subscriber_count -= 1
                        break
                else:
                    return
                count = self.state.subscriber_count
            self._log.log_operation("unsubscribe", subscriber_count=count)

        return unsubscribe

    # ── Reporting ────────────────────────────────────────────────

    def report(self, error: object, metadata: Mapping[str, Any] | None = None) -> None:
        self._ensure_alive("report")
        ensure(
            is_error_like(error),
            f"report expected an error object, instead got {describe_type(error)}",
        )
        with self._lock:
            if self.state.subscriber_count == 0:
                return
            subscribers = self.state.subscribers

        payload = self._build_payload(error)
        if payload is None:
            return
        if metadata:
            payload.update(metadata)

        for subscriber in subscribers:
            subscriber(payload)

    def _build_payload(self, error: object) -> Payload | None:
        values = {prop: read_error_property(error, prop) for prop in self._properties()}
        sensitive = any(self.detectors.is_sensitive(_stringify(v)) for v in values.values())
        purge = self.options.purge
        error_type = type(error).__name__

        if not sensitive or not purge:
            self._log.log_report("delivered", error_type, purge=purge, sensitive=sensitive)
            return values
        if purge == "strict":
            self._log.log_report("dropped", error_type, purge=purge)
            return None
        self._log.log_report("redacted", error_type, purge=purge)
        return {prop: self.detectors.sanitize(_stringify(v)) for prop, v in values.items()}

    # ── Global hooks ─────────────────────────────────────────────

    def bind_to_global(self) -> None:
        """Report uncaught exceptions from the main thread and worker threads."""
        self._ensure_alive("bind_to_global")
        hooks.bind(self, self.host)
        self._log.log_operation("bind_to_global")

    def unbind_from_global(self) -> None:
        # Not lifecycle-gated: a terminated reporter must still be removable.
        hooks.unbind(self.host)
        self._log.log_operation("unbind_from_global")


__all__ = [
    "Payload",
    "Subscriber",
    "Unsubscribe",
    "Subscription",
    "ReporterState",
    "Reporter",
]
