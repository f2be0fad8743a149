"""Whole-canvas auto layout with a deterministic grid fallback."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .. import stages
from ..config import LayoutConfig, get_engine_config
from ..logging_utils import apply_debug_logging
from ..model import Connection, Node, Position
from .backend import (
    LayoutBackend,
    LayoutBackendError,
    LayoutEdge,
    LayoutGraph,
    LayoutGroup,
    LayoutNode,
    NetworkxLayoutBackend,
)
from .options import LayoutOptions, resolve_options

logger = logging.getLogger(__name__)

UNKNOWN_STAGE = "unknown"


@dataclass
class LayoutResult:
    nodes: List[Node]
    edges: List[Connection]
    algorithm: str
    used_fallback: bool = False
    notes: List[str] = field(default_factory=list)


def build_layout_graph(
    nodes: Sequence[Node],
    edges: Sequence[Connection],
    root: LayoutOptions,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LayoutGraph:
    """Group ``nodes`` by owning stage; each group takes its stage preset plus ``overrides``."""

    groups: Dict[str, LayoutGroup] = {}
    for node in nodes:
        stage = node.stage or UNKNOWN_STAGE
        group = groups.get(stage)
        if group is None:
            group = LayoutGroup(id=f"stage-{stage}", stage=stage, options=resolve_options(stage, overrides))
            groups[stage] = group
        group.children.append(
            LayoutNode(
                id=node.id,
                width=node.size.width,
                height=node.size.height,
                x=node.position.x,
                y=node.position.y,
                type=node.type,
            )
        )
    known = {node.id for node in nodes}
    layout_edges = [
        LayoutEdge(conn.id, conn.source, conn.target)
        for conn in edges
        if conn.source in known and conn.target in known
    ]
    ordered = sorted(groups.values(), key=lambda group: stages.stage_rank(group.stage))
    return LayoutGraph(options=root, groups=ordered, edges=layout_edges)


def _apply_positions(nodes: Sequence[Node], positions: Any) -> List[Node]:
    if not isinstance(positions, Mapping):
        raise LayoutBackendError(f"layout returned {type(positions).__name__}, expected a mapping")
    laid_out = []
    for node in nodes:
        point = positions.get(node.id)
        if point is None:
            laid_out.append(node)
            continue
        x, y = float(point[0]), float(point[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise LayoutBackendError(f"non-finite position for node {node.id}")
        laid_out.append(node.evolve(position=Position(x, y)))
    return laid_out


def fallback_grid(nodes: Sequence[Node], config: Optional[LayoutConfig] = None) -> List[Node]:
    """One column per node type, in order of first appearance, sized to the widest node."""

    config = config or get_engine_config().layout
    columns: Dict[str, List[int]] = {}
    for idx, node in enumerate(nodes):
        columns.setdefault(node.type or "default", []).append(idx)

    laid_out = list(nodes)
    x, start_y = config.fallback_start
    for indices in columns.values():
        y = start_y
        width = 0.0
        for idx in indices:
            node = nodes[idx]
            laid_out[idx] = node.evolve(position=Position(x, y))
            y += node.size.height + config.fallback_row_gap
            width = max(width, node.size.width)
        x += width + config.fallback_column_gap
    return laid_out


def _fallback(
    nodes: List[Node], edges: List[Connection], config: LayoutConfig, reason: str
) -> LayoutResult:
    try:
        laid_out = fallback_grid(nodes, config)
    except Exception:
        logger.exception("Grid fallback failed; keeping current positions")
        return LayoutResult(nodes, edges, algorithm="none", used_fallback=True, notes=[reason])
    return LayoutResult(laid_out, edges, algorithm="grid", used_fallback=True, notes=[reason])


async def layout(
    nodes: List[Node],
    edges: List[Connection],
    stage_id: Optional[str] = None,
    options: Optional[Mapping[str, Any]] = None,
    backend: Optional[LayoutBackend] = None,
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    """Lay out the whole canvas. Never raises: failures end in the grid fallback."""

    if config is None:
        config = get_engine_config().layout
    if not nodes:
        return LayoutResult(nodes, edges, algorithm="none")

    try:
        root = resolve_options(stage_id, options)
        graph = build_layout_graph(nodes, edges, root, options)
        backend = backend if backend is not None else NetworkxLayoutBackend(config)
        logger.info(
            "Running %s layout for %d nodes and %d edges in %d stage group(s)",
            root.algorithm,
            len(nodes),
            len(graph.edges),
            len(graph.groups),
        )
        positions = await asyncio.wait_for(backend.layout(graph, root), timeout=config.timeout_seconds)
        laid_out = _apply_positions(nodes, positions)
    except Exception as exc:
        reason = f"{type(exc).__name__}: {exc}"
        logger.warning("Layout failed (%s); applying grid fallback", reason)
        return _fallback(nodes, edges, config, reason)

    missing = sum(1 for node in nodes if node.id not in positions)
    notes = [f"{missing} node(s) kept their position"] if missing else []
    logger.info("Layout finished (%s)", root.algorithm)
    return LayoutResult(laid_out, edges, algorithm=root.algorithm, notes=notes)


async def apply_force_directed_layout(
    nodes: List[Node],
    edges: List[Connection],
    options: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> LayoutResult:
    force = {"algorithm": "force", "iterations": 300, "repulsion": 2.0, "attraction": 0.1}
    force.update(options or {})
    return await layout(nodes, edges, None, force, **kwargs)


async def apply_hierarchical_layout(
    nodes: List[Node],
    edges: List[Connection],
    direction: str = "DOWN",
    options: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> LayoutResult:
    layered = {"algorithm": "layered", "direction": direction, "node_spacing": 80.0, "layer_spacing": 100.0}
    layered.update(options or {})
    return await layout(nodes, edges, None, layered, **kwargs)


async def apply_radial_layout(
    nodes: List[Node],
    edges: List[Connection],
    options: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> LayoutResult:
    radial = {"algorithm": "radial", "radius": 300.0}
    radial.update(options or {})
    return await layout(nodes, edges, None, radial, **kwargs)


async def apply_stage_layout(
    nodes: List[Node], edges: List[Connection], stage_id: str, **kwargs: Any
) -> LayoutResult:
    return await layout(nodes, edges, stage_id, **kwargs)


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "LayoutResult",
    "apply_force_directed_layout",
    "apply_hierarchical_layout",
    "apply_radial_layout",
    "apply_stage_layout",
    "build_layout_graph",
    "fallback_grid",
    "layout",
]
