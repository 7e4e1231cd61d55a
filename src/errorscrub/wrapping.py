"""Call-wrapping layer: fault boundaries that feed the reporter.

A wrapped call never raises the application error it caught; the error is
reported and the call returns ``None``. Callers can't tell "returned None"
from "error suppressed" by the return value alone. ``KeyboardInterrupt``,
``SystemExit`` and other non-``Exception`` exits pass through untouched.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from .errors import describe_type, ensure

T = TypeVar("T")

NodeCallback = Callable[[BaseException | None, Any], Any]


class CallWrappingMixin:
    if TYPE_CHECKING:

        def _ensure_alive(self, operation: str) -> None: ...

        def report(self, error: object, metadata: Mapping[str, Any] | None = None) -> None: ...

    def wrap(self, fn: Callable[..., T]) -> Callable[..., T | None]:
        self._ensure_alive("wrap")
        ensure(callable(fn), f"wrap expected a callable, instead got {describe_type(fn)}")

        @functools.wraps(fn)
        def wrapped(*args: Any, **kwargs: Any) -> T | None:
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                self.report(exc)
                return None

        return wrapped

    def wrap_callback(self, fn: Callable[..., Any]) -> Callable[..., None]:
        """Wrap ``fn`` so its outcome goes to a node-style ``cb(error, result)``.

        The callback runs exactly once: ``cb(None, result)`` on success,
        ``cb(error, None)`` after the error has been reported.
        """
        self._ensure_alive("wrap_callback")
        ensure(
            callable(fn),
            f"wrap_callback expected a callable, instead got {describe_type(fn)}",
        )

        @functools.wraps(fn)
        def wrapped(cb: NodeCallback, *args: Any, **kwargs: Any) -> None:
            ensure(
                callable(cb),
                f"wrap_callback expected a callback callable, instead got {describe_type(cb)}",
            )
            result: Any = None
            error: BaseException | None = None
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                error = exc
                self.report(exc)
            cb(error, result)

        return wrapped

    def try_immediate(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
        self._ensure_alive("try_immediate")
        ensure(callable(fn), f"try_immediate expected a callable, instead got {describe_type(fn)}")
        return self.wrap(fn)(*args, **kwargs)

    def try_callback_immediate(
        self, fn: Callable[..., Any], cb: NodeCallback, *args: Any, **kwargs: Any
    ) -> None:
        self._ensure_alive("try_callback_immediate")
        ensure(
            callable(fn),
            f"try_callback_immediate expected a callable, instead got {describe_type(fn)}",
        )
        ensure(
            callable(cb),
            "try_callback_immediate expected a callback callable, "
            f"instead got {describe_type(cb)}",
        )
        self.wrap_callback(fn)(cb, *args, **kwargs)

    @contextmanager
    def guard(self, **metadata: Any) -> Iterator[None]:
        """Report and suppress any ``Exception`` raised inside the block."""
        self._ensure_alive("guard")
        try:
            yield
        except Exception as exc:
            self.report(exc, metadata or None)


__all__ = ["CallWrappingMixin", "NodeCallback"]
