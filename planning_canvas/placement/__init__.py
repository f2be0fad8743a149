"""Placement engine for new canvas nodes."""

from .engine import is_clear, place, ring_probes
from .groups import ARRANGEMENTS, arrange_nodes_in_group, group_origin
from .regions import (
    CATEGORY_ZONES,
    DEFAULT_ZONE,
    GRID_DESCRIPTORS,
    NODE_SIZES,
    SEMANTIC_REGIONS,
    STAGE_ZONES,
    GridDescriptor,
    node_size_for,
)

__all__ = [
    "ARRANGEMENTS",
    "CATEGORY_ZONES",
    "DEFAULT_ZONE",
    "GRID_DESCRIPTORS",
    "GridDescriptor",
    "NODE_SIZES",
    "SEMANTIC_REGIONS",
    "STAGE_ZONES",
    "arrange_nodes_in_group",
    "group_origin",
    "is_clear",
    "node_size_for",
    "place",
    "ring_probes",
]
