"""Engine-wide constants with environment overrides."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from mdnote_engine.runtime.telemetry import env_value


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Tunables shared by every component of an editing session."""

    indent_width: int = 8
    copy_indent: str = "  "
    snapshot_capacity: int = 200
    match_threshold: int = 50
    line_weight: int = 10
    nearby_radius: int = 3
    large_insert_chars: int = 20
    recapture_delay_ms: int = 10
    rebuild_delay_ms: int = 0
    restore_delay_ms: int = 16

    def __post_init__(self) -> None:
        if self.indent_width <= 0:
            raise ValueError("indent_width must be positive")
        if self.snapshot_capacity <= 0:
            raise ValueError("snapshot_capacity must be positive")

    @property
    def indent_unit(self) -> str:
        return " " * self.indent_width

    @classmethod
    def from_env(cls, overrides: Optional[Mapping[str, object]] = None) -> "EngineConfig":
        """Build a config from ``MDNOTE_ENGINE_<FIELD>`` variables, then ``overrides``."""

        values: dict[str, object] = {}
        for item in fields(cls):
            raw = env_value(item.name.upper())
            if raw is None:
                continue
            values[item.name] = raw if item.type in (str, "str") else int(raw)
        config = cls(**values)  # type: ignore[arg-type]
        if overrides:
            config = replace(config, **overrides)
        return config


DEFAULT_CONFIG = EngineConfig()

__all__ = ["EngineConfig", "DEFAULT_CONFIG"]
