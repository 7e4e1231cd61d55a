"""Process-wide uncaught-exception hooks.

At most one reporter may be bound at a time per host. The binding registry
lives on the host (``host.bound``) and every check-and-set happens under a
single process-wide lock, so concurrent binds from different threads can't
both succeed.
"""

from __future__ import annotations

import sys
import threading
import traceback
from collections.abc import Callable
from types import TracebackType
from typing import Any, Protocol

from .errors import GlobalBindingError, ensure

ErrorHandler = Callable[[BaseException, TracebackType | None], None]

_BIND_LOCK = threading.Lock()


class _Reports(Protocol):
    def report(self, error: object, metadata: dict[str, Any] | None = None) -> None: ...


class HookHost(Protocol):
    bound: object | None

    def install(self, handler: ErrorHandler) -> None: ...

    def uninstall(self) -> None: ...


class InterpreterHost:
    """Installs ``sys.excepthook`` and ``threading.excepthook``.

    The previously installed hooks are chained after reporting so the
    interpreter keeps printing uncaught tracebacks.
    """

    def __init__(self) -> None:
        self.bound: object | None = None
        self._previous_excepthook: Any = None
        self._previous_threading_excepthook: Any = None

    def install(self, handler: ErrorHandler) -> None:
        previous = sys.excepthook
        previous_threading = threading.excepthook
        self._previous_excepthook = previous
        self._previous_threading_excepthook = previous_threading

        def errorscrub_excepthook(
            exc_type: type[BaseException],
            exc_value: BaseException,
            exc_tb: TracebackType | None,
        ) -> None:
            try:
                handler(exc_value, exc_tb)
            finally:
                previous(exc_type, exc_value, exc_tb)

        def errorscrub_threading_excepthook(args: threading.ExceptHookArgs) -> None:
            try:
                if args.exc_value is not None:
                    handler(args.exc_value, args.exc_traceback)
            finally:
                previous_threading(args)

        sys.excepthook = errorscrub_excepthook
        threading.excepthook = errorscrub_threading_excepthook

    def uninstall(self) -> None:
        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
        if self._previous_threading_excepthook is not None:
            threading.excepthook = self._previous_threading_excepthook
        self._previous_excepthook = None
        self._previous_threading_excepthook = None


class DetachedHost:
    """Keeps the handler without touching the interpreter."""

    def __init__(self) -> None:
        self.bound: object | None = None
        self.handler: ErrorHandler | None = None

    def install(self, handler: ErrorHandler) -> None:
        self.handler = handler

    def uninstall(self) -> None:
        self.handler = None


def traceback_metadata(exc_tb: TracebackType | None) -> dict[str, Any]:
    """Location of the innermost frame: ``source``, ``line_number``, ``column_number``."""
    if exc_tb is None:
        return {"source": None, "line_number": None, "column_number": None}
    frame = traceback.extract_tb(exc_tb)[-1]
    return {
        "source": frame.filename,
        "line_number": frame.lineno,
        # colno is only recorded on 3.11+
        "column_number": getattr(frame, "colno", None),
    }


def bind(reporter: _Reports, host: HookHost) -> None:
    def on_uncaught(exc_value: BaseException, exc_tb: TracebackType | None) -> None:
        reporter.report(exc_value, traceback_metadata(exc_tb))

    with _BIND_LOCK:
        ensure(
            host.bound is None,
            "There's already a reporter bound to the global hooks.",
            GlobalBindingError,
        )
        host.install(on_uncaught)
        host.bound = reporter


def unbind(host: HookHost) -> None:
    with _BIND_LOCK:
        ensure(
            host.bound is not None,
            "There's no reporter bound to the global hooks.",
            GlobalBindingError,
        )
        host.uninstall()
        host.bound = None


__all__ = [
    "ErrorHandler",
    "HookHost",
    "InterpreterHost",
    "DetachedHost",
    "traceback_metadata",
    "bind",
    "unbind",
]
