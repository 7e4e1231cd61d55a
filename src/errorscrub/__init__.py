"""errorscrub - in-process error capture with secret redaction.

High-level public API (stable):

from errorscrub import Reporter

reporter = Reporter({"purge": "loose"})
unsubscribe = reporter.subscribe(lambda payload: print(payload))

# Explicit fault boundaries
safe_parse = reporter.wrap(parse)
reporter.try_immediate(parse, raw)
with reporter.guard(job_id=42):
    run_job()

# Uncaught exceptions (main thread and worker threads)
reporter.bind_to_global()

Purge modes:
- "strict" (default): payloads carrying sensitive content are dropped.
- "loose": every property of a sensitive payload is redacted.
- False: payloads are delivered unchanged.

Subscribers receive a fresh dict per report and must copy anything they keep.
"""

from __future__ import annotations

from .config import ReporterOptions, load_options
from .detectors import DEFAULT_DETECTORS, REDACTION_TOKEN, Detector, DetectorSet
from .errors import (
    ConfigError,
    ErrorScrubError,
    GlobalBindingError,
    LifecycleError,
    PreconditionError,
)
from .reporter import Reporter
from .sinks import LoggingSubscriber, RecordingSubscriber

__version__ = "0.1.0"


def is_sensitive(text: str) -> bool:
    return DEFAULT_DETECTORS.is_sensitive(text)


def sanitize(text: str) -> str:
    return DEFAULT_DETECTORS.sanitize(text)


__all__ = [
    "Reporter",
    "ReporterOptions",
    "load_options",
    "Detector",
    "DetectorSet",
    "DEFAULT_DETECTORS",
    "REDACTION_TOKEN",
    "ErrorScrubError",
    "PreconditionError",
    "LifecycleError",
    "GlobalBindingError",
    "ConfigError",
    "LoggingSubscriber",
    "RecordingSubscriber",
    "is_sensitive",
    "sanitize",
    "__version__",
]
