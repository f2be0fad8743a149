"""Layout graph structure and the pluggable layout algorithm."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

import networkx as nx
import numpy as np

from ..config import LayoutConfig, get_engine_config
from ..logging_utils import apply_debug_logging
from .options import LayoutOptions
from .overlap import OverlapOptions, remove_overlaps

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class LayoutBackendError(RuntimeError):
    """Raised when a layout algorithm cannot produce positions."""


@dataclass
class LayoutNode:
    id: str
    width: float
    height: float
    x: float
    y: float
    type: str = "default"


@dataclass
class LayoutEdge:
    id: str
    source: str
    target: str


@dataclass
class LayoutGroup:
    id: str
    stage: str
    options: LayoutOptions
    children: List[LayoutNode] = field(default_factory=list)

    def centroid(self) -> Point:
        if not self.children:
            return (0.0, 0.0)
        xs = [child.x + child.width / 2.0 for child in self.children]
        ys = [child.y + child.height / 2.0 for child in self.children]
        return (sum(xs) / len(xs), sum(ys) / len(ys))


@dataclass
class LayoutGraph:
    """Root -> stage groups -> nodes. Edges are kept at the root."""

    options: LayoutOptions
    groups: List[LayoutGroup] = field(default_factory=list)
    edges: List[LayoutEdge] = field(default_factory=list)
    id: str = "root"

    def nodes(self) -> List[LayoutNode]:
        return [child for group in self.groups for child in group.children]


class LayoutBackend(Protocol):
    async def layout(self, graph: LayoutGraph, options: LayoutOptions) -> Dict[str, Point]:
        """Return top-left coordinates keyed by node id."""
        ...


def _group_digraph(group: LayoutGroup, edges: List[LayoutEdge]) -> nx.DiGraph:
    graph = nx.DiGraph()
    for child in group.children:
        graph.add_node(child.id)
    for edge in edges:
        if edge.source in graph and edge.target in graph and edge.source != edge.target:
            graph.add_edge(edge.source, edge.target)
    return graph


def _layered(group: LayoutGroup, graph: nx.DiGraph) -> Dict[str, Point]:
    """Longest-path layering over the condensation; layers are centred on the cross axis."""

    options = group.options
    order = {child.id: idx for idx, child in enumerate(group.children)}
    boxes = {child.id: child for child in group.children}
    condensed = nx.condensation(graph)
    layers: List[List[str]] = []
    for generation in nx.topological_generations(condensed):
        members: List[str] = []
        for component in generation:
            members.extend(condensed.nodes[component]["members"])
        layers.append(sorted(members, key=order.__getitem__))

    positions: Dict[str, Point] = {}
    main = 0.0
    for layer in layers:
        if options.vertical:
            extents = [boxes[node_id].width for node_id in layer]
            thickness = max(boxes[node_id].height for node_id in layer)
        else:
            extents = [boxes[node_id].height for node_id in layer]
            thickness = max(boxes[node_id].width for node_id in layer)
        span = sum(extents) + options.node_spacing * (len(layer) - 1)
        cross = -span / 2.0
        for node_id, extent in zip(layer, extents):
            if options.vertical:
                positions[node_id] = (cross, main)
            else:
                positions[node_id] = (main, cross)
            cross += extent + options.node_spacing
        main += thickness + options.layer_spacing

    if options.direction in ("UP", "LEFT"):
        positions = _mirror(positions, boxes, vertical=options.vertical)
    return positions


def _mirror(positions: Dict[str, Point], boxes: Dict[str, LayoutNode], *, vertical: bool) -> Dict[str, Point]:
    mirrored = {}
    for node_id, (x, y) in positions.items():
        box = boxes[node_id]
        if vertical:
            mirrored[node_id] = (x, -(y + box.height))
        else:
            mirrored[node_id] = (-(x + box.width), y)
    return mirrored


def _centres_to_corners(group: LayoutGroup, centres: np.ndarray) -> Dict[str, Point]:
    return {
        child.id: (float(cx) - child.width / 2.0, float(cy) - child.height / 2.0)
        for child, (cx, cy) in zip(group.children, centres)
    }


def _scaled_centres(group: LayoutGroup, raw: Dict[str, np.ndarray], scale: float) -> np.ndarray:
    return np.array([raw[child.id] * scale for child in group.children], dtype=float)


def _radial_shells(group: LayoutGroup, graph: nx.DiGraph) -> List[List[str]]:
    """Hop-distance rings around the best-connected node; unreachable nodes form the outer ring."""

    order = {child.id: idx for idx, child in enumerate(group.children)}
    undirected = graph.to_undirected()
    root = min(undirected.nodes, key=lambda node_id: (-undirected.degree(node_id), order[node_id]))
    shells = [sorted(layer, key=order.__getitem__) for layer in nx.bfs_layers(undirected, [root])]
    reached = {node_id for shell in shells for node_id in shell}
    rest = [child.id for child in group.children if child.id not in reached]
    if rest:
        shells.append(rest)
    return shells


def _check_deadline(deadline: Optional[float], group: LayoutGroup, phase: str) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise LayoutBackendError(f"layout deadline exceeded during {phase} of {group.id}")


class NetworkxLayoutBackend:
    """Default layout algorithm built on networkx, with a scipy overlap pass.

    The backend runs on the event loop thread, so it enforces
    ``config.timeout_seconds`` itself: the deadline is checked between the
    graph phase and the overlap rounds of every group and raises
    :class:`LayoutBackendError` once it has passed.
    """

    def __init__(self, config: Optional[LayoutConfig] = None) -> None:
        self.config = config or get_engine_config().layout

    def _overlap_options(self) -> OverlapOptions:
        return OverlapOptions(padding=self.config.overlap_padding, softplus_k=self.config.softplus_k)

    def _separate(self, group: LayoutGroup, centres: np.ndarray, deadline: Optional[float]) -> Dict[str, Point]:
        _check_deadline(deadline, group, "graph layout")
        sizes = np.array([(child.width, child.height) for child in group.children], dtype=float)
        result = remove_overlaps(centres, sizes, self._overlap_options(), deadline=deadline)
        for note in result.notes:
            logger.debug("Overlap pass for %s: %s", group.id, note)
        if result.timed_out:
            raise LayoutBackendError(f"layout deadline exceeded during overlap removal of {group.id}")
        return _centres_to_corners(group, result.centers)

    def _stress(self, group: LayoutGroup, graph: nx.DiGraph, deadline: Optional[float]) -> Dict[str, Point]:
        undirected = graph.to_undirected()
        raw = nx.kamada_kawai_layout(undirected)
        scale = group.options.desired_edge_length * max(1.0, math.sqrt(len(group.children)))
        return self._separate(group, _scaled_centres(group, raw, scale), deadline)

    def _force(self, group: LayoutGroup, graph: nx.DiGraph, deadline: Optional[float]) -> Dict[str, Point]:
        options = group.options
        undirected = graph.to_undirected()
        raw = nx.spring_layout(undirected, seed=42, iterations=options.iterations)
        spread = options.node_spacing * options.repulsion / max(options.attraction, 1e-3) / 10.0
        scale = max(spread, options.node_spacing) * max(1.0, math.sqrt(len(group.children)))
        return self._separate(group, _scaled_centres(group, raw, scale), deadline)

    def _radial(self, group: LayoutGroup, graph: nx.DiGraph, deadline: Optional[float]) -> Dict[str, Point]:
        shells = _radial_shells(group, graph)
        # shell_layout steps the ring radius by scale / len(shells); a lone root sits at the centre
        raw = nx.shell_layout(graph.to_undirected(), nlist=shells, scale=group.options.radius * len(shells))
        return self._separate(group, _scaled_centres(group, raw, 1.0), deadline)

    def layout_group(
        self, group: LayoutGroup, edges: List[LayoutEdge], deadline: Optional[float] = None
    ) -> Dict[str, Point]:
        if not group.children:
            return {}
        if len(group.children) == 1:
            return {group.children[0].id: (0.0, 0.0)}
        graph = _group_digraph(group, edges)
        algorithm = group.options.algorithm
        if algorithm == "layered":
            return _layered(group, graph)
        if algorithm == "stress":
            return self._stress(group, graph, deadline)
        if algorithm == "force":
            return self._force(group, graph, deadline)
        if algorithm == "radial":
            return self._radial(group, graph, deadline)
        raise LayoutBackendError(f"unsupported algorithm '{algorithm}'")

    async def layout(self, graph: LayoutGraph, options: LayoutOptions) -> Dict[str, Point]:
        deadline = time.monotonic() + self.config.timeout_seconds
        blocks = []
        for group in graph.groups:
            local = self.layout_group(group, graph.edges, deadline)
            blocks.append((group, _normalised(group, local)))
            # hand control back to the loop between groups
            await asyncio.sleep(0)
        return _pack(blocks, graph, options, self.config.group_spacing)


def _normalised(group: LayoutGroup, local: Dict[str, Point]) -> Dict[str, Point]:
    if not local:
        return local
    min_x = min(x for x, _ in local.values())
    min_y = min(y for _, y in local.values())
    return {node_id: (x - min_x, y - min_y) for node_id, (x, y) in local.items()}


def _extent(group: LayoutGroup, local: Dict[str, Point]) -> Point:
    width = height = 0.0
    for child in group.children:
        if child.id not in local:
            continue
        x, y = local[child.id]
        width = max(width, x + child.width)
        height = max(height, y + child.height)
    return (width, height)


def _pack(
    blocks: List[Tuple[LayoutGroup, Dict[str, Point]]],
    graph: LayoutGraph,
    options: LayoutOptions,
    spacing: float,
) -> Dict[str, Point]:
    """Lay stage groups one after another along the root direction, keeping their prior order."""

    nodes = graph.nodes()
    if not nodes:
        return {}
    origin_x = min(node.x for node in nodes)
    origin_y = min(node.y for node in nodes)
    axis = 1 if options.vertical else 0
    reverse = options.direction in ("UP", "LEFT")
    ordered = sorted(blocks, key=lambda block: block[0].centroid()[axis], reverse=reverse)

    positions: Dict[str, Point] = {}
    cursor = 0.0
    for group, local in ordered:
        pad = group.options.padding
        width, height = _extent(group, local)
        for node_id, (x, y) in local.items():
            if options.vertical:
                positions[node_id] = (origin_x + pad + x, origin_y + cursor + pad + y)
            else:
                positions[node_id] = (origin_x + cursor + pad + x, origin_y + pad + y)
        cursor += (height if options.vertical else width) + 2.0 * pad + spacing
    return positions


apply_debug_logging(globals(), logger=logger, skip={"LayoutBackend"})


__all__ = [
    "LayoutBackend",
    "LayoutBackendError",
    "LayoutEdge",
    "LayoutGraph",
    "LayoutGroup",
    "LayoutNode",
    "NetworkxLayoutBackend",
]
