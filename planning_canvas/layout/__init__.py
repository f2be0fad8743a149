"""Graph layout engine for the planning canvas."""

from .backend import (
    LayoutBackend,
    LayoutBackendError,
    LayoutEdge,
    LayoutGraph,
    LayoutGroup,
    LayoutNode,
    NetworkxLayoutBackend,
)
from .engine import (
    LayoutResult,
    apply_force_directed_layout,
    apply_hierarchical_layout,
    apply_radial_layout,
    apply_stage_layout,
    build_layout_graph,
    fallback_grid,
    layout,
)
from .options import DEFAULT_LAYOUT_OPTIONS, STAGE_LAYOUT_PRESETS, LayoutOptions, resolve_options
from .overlap import OverlapOptions, OverlapResult, candidate_pairs, remove_overlaps, total_overlap

__all__ = [
    "DEFAULT_LAYOUT_OPTIONS",
    "LayoutBackend",
    "LayoutBackendError",
    "LayoutEdge",
    "LayoutGraph",
    "LayoutGroup",
    "LayoutNode",
    "LayoutOptions",
    "LayoutResult",
    "NetworkxLayoutBackend",
    "OverlapOptions",
    "OverlapResult",
    "STAGE_LAYOUT_PRESETS",
    "apply_force_directed_layout",
    "apply_hierarchical_layout",
    "apply_radial_layout",
    "apply_stage_layout",
    "build_layout_graph",
    "candidate_pairs",
    "fallback_grid",
    "layout",
    "remove_overlaps",
    "resolve_options",
    "total_overlap",
]
