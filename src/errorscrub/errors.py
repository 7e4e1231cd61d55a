"""Error taxonomy & precondition checks.

Every fault raised by errorscrub itself derives from ``ErrorScrubError`` so
callers can tell library misuse apart from the application errors the
reporter captures (those are never raised by the pipeline, only delivered).

Public API:
- ensure(condition, message, exc_type) -> None
- run_mode() -> str

Environment:
  ERRORSCRUB_ENV (default ``development``). In ``production`` precondition
  faults are raised without a message.
"""
from __future__ import annotations

import os

ENV_RUN_MODE = "ERRORSCRUB_ENV"
PRODUCTION = "production"


class ErrorScrubError(Exception):
    pass


class PreconditionError(ErrorScrubError, TypeError):
    """Wrong argument type or misuse of the reporter API."""


class LifecycleError(PreconditionError):
    """Operation attempted on a terminated reporter."""


class GlobalBindingError(PreconditionError):
    """Double bind to the global hooks, or unbind without a bind."""


class ConfigError(ErrorScrubError, ValueError):
    pass


def run_mode() -> str:
    return os.environ.get(ENV_RUN_MODE, "development").strip().lower() or "development"


def ensure(
    condition: object,
    message: str,
    exc_type: type[PreconditionError] = PreconditionError,
) -> None:
    """Raise ``exc_type`` unless ``condition`` holds.

    Outside production the message is attached; in production the fault is
    bare so internal details don't reach end users.
    """
    if condition:
        return
    if run_mode() == PRODUCTION:
        raise exc_type()
    raise exc_type(message)


def describe_type(value: object) -> str:
    return type(value).__name__


__all__ = [
    "ErrorScrubError",
    "PreconditionError",
    "LifecycleError",
    "GlobalBindingError",
    "ConfigError",
    "ensure",
    "run_mode",
    "describe_type",
]
