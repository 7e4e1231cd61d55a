"""Subscriber discovery from entry points and the environment."""

from __future__ import annotations

import importlib
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from importlib import metadata
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from .reporter import Reporter, Unsubscribe

PLUGIN_GROUP = "errorscrub.subscribers"
ENV_PLUGIN_SPEC = "ERRORSCRUB_SUBSCRIBERS"


@dataclass(frozen=True)
class SubscriberPlugin:
    name: str
    callback: Callable[[dict[str, Any]], Any]


def _load_entry_point_plugins() -> list[SubscriberPlugin]:
    plugins: list[SubscriberPlugin] = []
    try:
        entries = cast(Iterable[Any], metadata.entry_points(group=PLUGIN_GROUP))
    except Exception:  # pragma: no cover - importlib metadata edge case
        return plugins
    for ep in entries:
        try:
            obj = ep.load()
        except Exception:  # pragma: no cover - plugin load failures shouldn't crash
            continue
        if callable(obj):
            plugins.append(SubscriberPlugin(name=ep.name, callback=obj))
    return plugins


def _load_env_plugins() -> list[SubscriberPlugin]:
    spec = os.environ.get(ENV_PLUGIN_SPEC)
    if not spec:
        return []
    plugins: list[SubscriberPlugin] = []
    for raw_item in spec.split(","):
        item = raw_item.strip()
        if not item:
            continue
        module_name, _, attr = item.partition(":")
        if not module_name or not attr:
            continue
        try:
            module = importlib.import_module(module_name)
            callback = getattr(module, attr)
        except Exception:  # noqa: BLE001 - a broken plugin module is skipped
            continue
        if callable(callback):
            plugins.append(SubscriberPlugin(name=f"env:{item}", callback=callback))
    return plugins


def load_subscribers(disabled: Iterable[str] = ()) -> list[SubscriberPlugin]:
    skip = set(disabled)
    return [
        plugin
        for plugin in _load_entry_point_plugins() + _load_env_plugins()
        if plugin.name not in skip
    ]


def attach_plugins(reporter: Reporter, disabled: Iterable[str] = ()) -> list[Unsubscribe]:
    """Subscribe every discovered plugin; returns their unsubscribe handles."""
    return [reporter.subscribe(plugin.callback) for plugin in load_subscribers(disabled)]


__all__ = [
    "PLUGIN_GROUP",
    "ENV_PLUGIN_SPEC",
    "SubscriberPlugin",
    "load_subscribers",
    "attach_plugins",
]
