"""Deterministic, collision-aware placement for newly created nodes."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import PlacementConfig, get_engine_config
from ..logging_utils import apply_debug_logging
from ..model import Node, Position, Size
from .regions import (
    CATEGORY_ZONES,
    DEFAULT_ZONE,
    GRID_DESCRIPTORS,
    SEMANTIC_REGIONS,
    STAGE_ZONES,
    node_size_for,
)

logger = logging.getLogger(__name__)

Bounds = Tuple[float, float, float, float]


def _distance(a: Position, b: Position) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def _in_bounds(point: Position, size: Size, bounds: Bounds) -> bool:
    min_x, min_y, max_x, max_y = bounds
    return (
        point.x >= min_x
        and point.y >= min_y
        and point.x + size.width <= max_x
        and point.y + size.height <= max_y
    )


def is_clear(
    point: Position,
    existing_nodes: Iterable[Node],
    min_distance: float,
    size: Optional[Size] = None,
    bounds: Optional[Bounds] = None,
) -> bool:
    """True when ``point`` keeps ``min_distance`` from every node (and fits ``bounds``)."""

    if bounds is not None and not _in_bounds(point, size or Size(0.0, 0.0), bounds):
        return False
    return all(_distance(point, node.position) >= min_distance for node in existing_nodes)


def ring_probes(center: Position, ring: int, step: float, count: int = 8) -> List[Position]:
    radius = ring * step
    probes = []
    for idx in range(count):
        angle = 2.0 * math.pi * idx / count
        probes.append(Position(center.x + radius * math.cos(angle), center.y + radius * math.sin(angle)))
    return probes


def _resolve_target(
    node_type: str,
    preferred_position: Optional[Position],
    stage_id: Optional[str],
    is_user_created: bool,
    config: PlacementConfig,
) -> Position:
    if preferred_position is not None:
        return preferred_position
    if is_user_created:
        return Position(*config.center)
    zone = CATEGORY_ZONES.get(node_type)
    if zone is not None:
        return zone
    if stage_id is not None and stage_id in STAGE_ZONES:
        return STAGE_ZONES[stage_id]
    return DEFAULT_ZONE


def _search(
    target: Position,
    size: Size,
    existing_nodes: Sequence[Node],
    config: PlacementConfig,
    rng: Optional[np.random.Generator],
) -> Position:
    bounds = config.canvas_bounds
    if is_clear(target, existing_nodes, config.min_distance, size, bounds):
        return target
    for ring in range(1, config.max_rings + 1):
        for probe in ring_probes(target, ring, config.ring_step, config.probes_per_ring):
            if is_clear(probe, existing_nodes, config.min_distance, size, bounds):
                logger.debug("Placed at ring %d probe (%.1f, %.1f)", ring, probe.x, probe.y)
                return probe

    rng = rng if rng is not None else np.random.default_rng()
    dx, dy = rng.uniform(-config.jitter, config.jitter, size=2)
    logger.warning(
        "No collision-free position within %d rings around (%.1f, %.1f); using jitter",
        config.max_rings,
        target.x,
        target.y,
    )
    return Position(target.x + float(dx), target.y + float(dy))


def place(
    existing_nodes: Sequence[Node],
    size: Optional[Size],
    node_type: str,
    preferred_position: Optional[Position] = None,
    stage_id: Optional[str] = None,
    is_user_created: bool = False,
    rng: Optional[np.random.Generator] = None,
    config: Optional[PlacementConfig] = None,
) -> Position:
    """Return the coordinate for a new node of ``node_type``.

    Singleton types land on their semantic region and grid types on the cell
    indexed by how many nodes of the type already exist. Everything else, and
    anything the user created or positioned explicitly, goes through the ring
    search around a resolved target point.
    """

    if config is None:
        config = get_engine_config().placement
    if size is None:
        size = node_size_for(node_type)

    if preferred_position is None and not is_user_created:
        region = SEMANTIC_REGIONS.get(node_type)
        if region is not None:
            return region
        grid = GRID_DESCRIPTORS.get(node_type)
        if grid is not None:
            count = sum(1 for node in existing_nodes if node.type == node_type)
            return grid.cell(count)

    target = _resolve_target(node_type, preferred_position, stage_id, is_user_created, config)
    return _search(target, size, existing_nodes, config, rng)


apply_debug_logging(globals(), logger=logger)


__all__ = ["is_clear", "node_size_for", "place", "ring_probes"]
