from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, cast

import yaml

from .errors import ConfigError

ENV_PURGE = "ERRORSCRUB_PURGE"

PurgeMode = Literal["strict", "loose", False]

_PURGE_MODES = ("strict", "loose")
_FALSE_WORDS = frozenset({"", "false", "off", "no", "0", "none"})


def _normalize_purge(value: Any) -> PurgeMode:
    if not value:
        return False
    if value in _PURGE_MODES:
        return cast(PurgeMode, value)
    raise ConfigError(f"purge must be 'strict', 'loose' or false, got {value!r}")


@dataclass(frozen=True)
class ReporterOptions:
    """Immutable reporter configuration, fixed at construction."""

    purge: PurgeMode = "strict"
    # keys this version does not know; carried read-only, never acted on
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "purge", _normalize_purge(self.purge))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def merge(cls, user_options: Mapping[str, Any] | ReporterOptions | None = None) -> ReporterOptions:
        """Merge user-supplied options over the defaults."""
        if user_options is None:
            return cls()
        if isinstance(user_options, ReporterOptions):
            return user_options
        known = {f.name for f in fields(cls)} - {"extra"}
        values = {k: v for k, v in user_options.items() if k in known}
        extra = {k: v for k, v in user_options.items() if k not in known}
        return cls(**values, extra=extra)


def _purge_from_env(default: Any) -> Any:
    raw = os.environ.get(ENV_PURGE)
    if raw is None:
        return default
    word = raw.strip().lower()
    return False if word in _FALSE_WORDS else word


def load_options(path: str | Path) -> ReporterOptions:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    raw = cast(dict[str, Any], yaml.safe_load(p.read_text()) or {})
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration root must be a mapping: {p}')
    reporter = raw.get('reporter', {}) or {}
    if not isinstance(reporter, dict):
        raise ConfigError(f"'reporter' section must be a mapping: {p}")
    purge = _purge_from_env(reporter.get('purge', 'strict'))
    return ReporterOptions.merge({**reporter, 'purge': purge})


__all__ = ["ENV_PURGE", "PurgeMode", "ReporterOptions", "load_options"]
