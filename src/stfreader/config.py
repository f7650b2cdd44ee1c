"""Reader settings, optionally taken from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from stfreader.errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(slots=True, frozen=True)
class ReaderConfig:
    max_depth: int = 256
    strict: bool = False
    encoding: str | None = None

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ConfigurationError(f"max_depth must be positive, got {self.max_depth}")

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> ReaderConfig:
        """Build a config from ``STF_*`` environment variables."""
        env = environ if environ is not None else os.environ
        defaults = cls()

        max_depth = defaults.max_depth
        raw_depth = env.get("STF_MAX_DEPTH")
        if raw_depth:
            try:
                max_depth = int(raw_depth)
            except ValueError as exc:
                raise ConfigurationError(
                    f"STF_MAX_DEPTH must be an integer, got {raw_depth!r}", cause=exc
                ) from exc

        strict = defaults.strict
        raw_strict = env.get("STF_STRICT")
        if raw_strict is not None:
            strict = _parse_flag("STF_STRICT", raw_strict)

        encoding = env.get("STF_ENCODING") or defaults.encoding
        return cls(max_depth=max_depth, strict=strict, encoding=encoding)


def _parse_flag(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {value!r}")
