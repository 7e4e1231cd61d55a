"""Environment probes: error shape and the ambient hook host.

``available_error_properties`` answers which of the candidate payload
properties the running interpreter actually populates, by raising a synthetic
exception and keeping the truthy readings. ``is_error_like`` is the report
precondition; it accepts real exceptions and any object with a ``name`` and a
``message``.
"""

from __future__ import annotations

import sys
import threading
import traceback
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from .hooks import DetachedHost, HookHost, InterpreterHost

ERROR_PROPERTIES: tuple[str, ...] = (
    "name",
    "message",
    "code",
    "column_number",
    "description",
    "file_name",
    "line_number",
    "number",
    "stack",
    "stack_trace_limit",
)

# Python attribute carrying each location property (SyntaxError, OSError).
_ATTRIBUTE_ALIASES: dict[str, tuple[str, ...]] = {
    "code": ("code", "errno"),
    "column_number": ("offset",),
    "file_name": ("filename",),
    "line_number": ("lineno",),
    "number": ("errno",),
}


@runtime_checkable
class ErrorLike(Protocol):
    name: Any
    message: Any


def is_error_like(value: object) -> bool:
    if isinstance(value, BaseException):
        return True
    if isinstance(value, type):
        return False
    return isinstance(value, ErrorLike)


def _format_stack(error: object) -> str:
    tb = getattr(error, "__traceback__", None)
    if not isinstance(error, BaseException) or tb is None:
        return ""
    return "".join(traceback.format_exception(type(error), error, tb))


def read_error_property(error: object, prop: str) -> Any:
    """Read one candidate property from an exception or error-like object.

    For real exceptions ``name`` and ``message`` always come from the class
    and ``str()``; ``NameError.name`` and friends mean something else.
    """
    if isinstance(error, BaseException):
        if prop == "name":
            return type(error).__name__
        if prop == "message":
            return str(error)
    explicit = getattr(error, prop, None)
    if explicit is not None:
        return explicit
    if prop == "stack":
        return _format_stack(error)
    if prop == "description":
        notes = getattr(error, "__notes__", None)
        return "\n".join(str(n) for n in notes) if notes else None
    if prop == "stack_trace_limit":
        return getattr(sys, "tracebacklimit", None)
    for attr in _ATTRIBUTE_ALIASES.get(prop, ()):
        value = getattr(error, attr, None)
        if value is not None:
            return value
    return None


def _synthetic_error() -> BaseException:
    try:
        raise Exception(*(["X"] * 10))
    except Exception as exc:  # noqa: BLE001 - we want the populated instance
        return exc


@lru_cache(maxsize=1)
def available_error_properties() -> tuple[str, ...]:
    probe = _synthetic_error()
    return tuple(prop for prop in ERROR_PROPERTIES if read_error_property(probe, prop))


_HOST_LOCK = threading.Lock()
_HOST: dict[str, HookHost | None] = {"host": None}


def ambient_global() -> HookHost:
    """Return the process-wide host for uncaught-exception hooks.

    The interpreter host (``sys.excepthook`` and ``threading.excepthook``) is
    used when the interpreter exposes those hooks; otherwise a detached host
    that installs nothing.
    """
    with _HOST_LOCK:
        host = _HOST["host"]
        if host is None:
            if hasattr(sys, "excepthook") and hasattr(threading, "excepthook"):
                host = InterpreterHost()
            else:
                host = DetachedHost()
            _HOST["host"] = host
        return host


__all__ = [
    "ERROR_PROPERTIES",
    "ErrorLike",
    "is_error_like",
    "read_error_property",
    "available_error_properties",
    "ambient_global",
]
