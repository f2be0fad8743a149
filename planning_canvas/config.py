"""Engine configuration.

A module-level default is kept for the whole process; callers read and replace
it through :func:`get_engine_config` / :func:`set_engine_config`, which always
hand out deep copies so nothing downstream can mutate the shared default.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Tuple

LAYOUT_ALGORITHMS = ("layered", "stress", "force", "radial")


@dataclass
class PlacementConfig:
    min_distance: float = 120.0
    ring_step: float = 160.0
    max_rings: int = 10
    probes_per_ring: int = 8
    jitter: float = 50.0
    canvas_bounds: Tuple[float, float, float, float] = (-2000.0, -2000.0, 4000.0, 4000.0)
    center: Tuple[float, float] = (400.0, 300.0)

    def validate(self) -> None:
        if self.min_distance <= 0:
            raise ValueError("min_distance must be positive")
        if self.ring_step <= 0:
            raise ValueError("ring_step must be positive")
        if self.max_rings < 1 or self.probes_per_ring < 1:
            raise ValueError("max_rings and probes_per_ring must be at least 1")
        if self.jitter < 0:
            raise ValueError("jitter must be non-negative")
        min_x, min_y, max_x, max_y = self.canvas_bounds
        if min_x >= max_x or min_y >= max_y:
            raise ValueError("canvas_bounds must be (min_x, min_y, max_x, max_y)")


@dataclass
class LayoutConfig:
    timeout_seconds: float = 5.0
    group_spacing: float = 200.0
    fallback_start: Tuple[float, float] = (100.0, 100.0)
    fallback_column_gap: float = 60.0
    fallback_row_gap: float = 40.0
    overlap_padding: float = 20.0
    softplus_k: float = 0.2

    def validate(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        for name in ("group_spacing", "fallback_column_gap", "fallback_row_gap", "overlap_padding"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.softplus_k <= 0:
            raise ValueError("softplus_k must be positive")


@dataclass
class SessionConfig:
    debounce_seconds: float = 0.3
    project_summary: bool = True

    def validate(self) -> None:
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")


@dataclass
class EngineConfig:
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    def validate(self) -> None:
        self.placement.validate()
        self.layout.validate()
        self.session.validate()


_ENGINE_CONFIG = EngineConfig()


def get_engine_config() -> EngineConfig:
    return copy.deepcopy(_ENGINE_CONFIG)


def set_engine_config(config: EngineConfig) -> None:
    global _ENGINE_CONFIG
    config.validate()
    _ENGINE_CONFIG = copy.deepcopy(config)


def _section(cls: type, raw: Any, name: str) -> Any:
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise ValueError(f"config section '{name}' must be a mapping")
    known = {f.name: f for f in fields(cls)}
    kwargs = {}
    for key, value in raw.items():
        if key not in known:
            raise ValueError(f"unknown option '{name}.{key}'")
        if isinstance(value, list):
            value = tuple(value)
        kwargs[key] = value
    return cls(**kwargs)


def load_engine_config(raw: Mapping[str, Any]) -> EngineConfig:
    """Build an :class:`EngineConfig` from a plain mapping (e.g. parsed JSON)."""

    unknown = set(raw) - {"placement", "layout", "session"}
    if unknown:
        raise ValueError(f"unknown config sections: {', '.join(sorted(unknown))}")
    config = EngineConfig(
        placement=_section(PlacementConfig, raw.get("placement"), "placement"),
        layout=_section(LayoutConfig, raw.get("layout"), "layout"),
        session=_section(SessionConfig, raw.get("session"), "session"),
    )
    config.validate()
    return config


__all__ = [
    "EngineConfig",
    "LAYOUT_ALGORITHMS",
    "LayoutConfig",
    "PlacementConfig",
    "SessionConfig",
    "get_engine_config",
    "load_engine_config",
    "set_engine_config",
]
