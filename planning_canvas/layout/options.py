"""Layout parameters and per-stage presets."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from .. import stages
from ..config import LAYOUT_ALGORITHMS

DIRECTIONS = ("DOWN", "UP", "RIGHT", "LEFT")


@dataclass(frozen=True)
class LayoutOptions:
    algorithm: str = "layered"
    direction: str = "DOWN"
    node_spacing: float = 80.0
    layer_spacing: float = 100.0
    desired_edge_length: float = 150.0
    repulsion: float = 2.0
    attraction: float = 0.1
    iterations: int = 300
    padding: float = 50.0
    radius: float = 300.0

    @property
    def vertical(self) -> bool:
        return self.direction in ("DOWN", "UP")

    def validate(self) -> None:
        if self.algorithm not in LAYOUT_ALGORITHMS:
            raise ValueError(f"unknown layout algorithm '{self.algorithm}'")
        if self.direction not in DIRECTIONS:
            raise ValueError(f"unknown layout direction '{self.direction}'")
        for name in ("node_spacing", "layer_spacing", "desired_edge_length", "padding", "radius"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.iterations < 1:
            raise ValueError("iterations must be at least 1")

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "LayoutOptions":
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"unknown layout options: {', '.join(sorted(unknown))}")
        merged = replace(self, **dict(overrides))
        merged.validate()
        return merged


DEFAULT_LAYOUT_OPTIONS = LayoutOptions()

STAGE_LAYOUT_PRESETS: Dict[str, Dict[str, Any]] = {
    stages.IDEATION: {"algorithm": "stress", "desired_edge_length": 150.0, "padding": 50.0},
    stages.FEATURES: {"algorithm": "layered", "direction": "RIGHT", "node_spacing": 100.0},
    stages.STRUCTURE: {"algorithm": "layered", "direction": "DOWN", "node_spacing": 80.0},
    stages.INTERFACE: {"algorithm": "force", "repulsion": 2.0, "attraction": 0.1},
    stages.ARCHITECTURE: {"algorithm": "layered", "direction": "DOWN", "node_spacing": 100.0},
    stages.AUTH: {"algorithm": "layered", "direction": "RIGHT", "node_spacing": 80.0},
}


def resolve_options(
    stage_id: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None
) -> LayoutOptions:
    """Defaults, then the stage preset, then caller overrides."""

    options = DEFAULT_LAYOUT_OPTIONS
    if stage_id is not None:
        options = options.merged(STAGE_LAYOUT_PRESETS.get(stage_id))
    return options.merged(overrides)


__all__ = [
    "DEFAULT_LAYOUT_OPTIONS",
    "DIRECTIONS",
    "LayoutOptions",
    "STAGE_LAYOUT_PRESETS",
    "resolve_options",
]
