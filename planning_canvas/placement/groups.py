"""Placement of several related nodes at once, as a grid, a circle or a line."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Sequence, Tuple

from ..logging_utils import apply_debug_logging
from ..model import Position, Size
from .regions import CATEGORY_ZONES, DEFAULT_ZONE, GRID_DESCRIPTORS, STAGE_ZONES, node_size_for

logger = logging.getLogger(__name__)

ARRANGEMENTS = ("grid", "circle", "horizontal", "vertical")

GRID_GAP = 60.0
LINE_GAP = 20.0
CIRCLE_RADIUS = 150.0


def _group_base(node_type: str, stage_id: Optional[str]) -> Position:
    grid = GRID_DESCRIPTORS.get(node_type)
    if grid is not None:
        return Position(grid.base_x, grid.base_y)
    zone = CATEGORY_ZONES.get(node_type)
    if zone is not None:
        return zone
    if stage_id is not None and stage_id in STAGE_ZONES:
        return STAGE_ZONES[stage_id]
    return DEFAULT_ZONE


def group_origin(node_count: int, node_type: str, stage_id: Optional[str] = None) -> Position:
    """Top-left anchor for a block of ``node_count`` nodes of ``node_type``.

    Grid types centre their first row on the type's base point; other types
    step up and to the left as the block grows.
    """

    base = _group_base(node_type, stage_id)
    grid = GRID_DESCRIPTORS.get(node_type)
    if grid is not None:
        width = node_size_for(node_type).width
        row_width = min(node_count, grid.columns) * (width + GRID_GAP)
        return Position(base.x - row_width / 2.0 + width / 2.0, base.y)
    return Position(base.x - node_count * 20.0, base.y - node_count * 10.0)


def arrange_nodes_in_group(
    members: Sequence[Tuple[str, Size]],
    node_type: str,
    stage_id: Optional[str] = None,
    arrangement: str = "grid",
) -> Dict[str, Position]:
    """Top-left positions keyed by id for ``members`` given as ``(id, size)`` pairs."""

    if arrangement not in ARRANGEMENTS:
        raise ValueError(f"unknown arrangement '{arrangement}'")
    if not members:
        return {}

    origin = group_origin(len(members), node_type, stage_id)
    positions: Dict[str, Position] = {}

    if arrangement == "grid":
        grid = GRID_DESCRIPTORS.get(node_type)
        columns = grid.columns if grid is not None else math.ceil(math.sqrt(len(members)))
        cell_width = max(size.width for _, size in members) + GRID_GAP
        cell_height = max(size.height for _, size in members) + GRID_GAP
        for idx, (node_id, _) in enumerate(members):
            row, col = divmod(idx, columns)
            positions[node_id] = Position(origin.x + col * cell_width, origin.y + row * cell_height)
    elif arrangement == "circle":
        step = 2.0 * math.pi / len(members)
        for idx, (node_id, size) in enumerate(members):
            angle = idx * step
            positions[node_id] = Position(
                origin.x + math.cos(angle) * CIRCLE_RADIUS - size.width / 2.0,
                origin.y + math.sin(angle) * CIRCLE_RADIUS - size.height / 2.0,
            )
    else:
        # lines advance by each member's own extent so mixed sizes never touch
        cursor = 0.0
        for node_id, size in members:
            if arrangement == "horizontal":
                positions[node_id] = Position(origin.x + cursor, origin.y)
                cursor += size.width + LINE_GAP
            else:
                positions[node_id] = Position(origin.x, origin.y + cursor)
                cursor += size.height + LINE_GAP

    logger.debug("Arranged %d %s node(s) as %s", len(positions), node_type, arrangement)
    return positions


apply_debug_logging(globals(), logger=logger)


__all__ = ["ARRANGEMENTS", "arrange_nodes_in_group", "group_origin"]
