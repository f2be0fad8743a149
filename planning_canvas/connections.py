"""Helpers for the canvas connection list."""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional, Tuple

from .model import Connection, Node, NodeId

# Default relationship label for a (source type, target type) pair.
CONNECTION_LABELS: Dict[Tuple[str, str], str] = {
    ("userPersona", "feature"): "needs",
    ("feature", "feature"): "depends on",
    ("coreProblem", "feature"): "solved by",
    ("coreProblem", "valueProp"): "addressed by",
    ("appName", "tagline"): "described by",
    ("mission", "feature"): "achieved by",
    ("architectureBlueprint", "feature"): "implements",
    ("feature", "architectureBlueprint"): "implemented by",
    ("screen", "userFlow"): "supports",
    ("userFlow", "screen"): "navigates",
    ("dataFlow", "architectureBlueprint"): "manages",
    ("competitor", "valueProp"): "compared to",
    ("techStack", "feature"): "enables",
    ("platform", "feature"): "hosts",
    ("uiStyle", "lofiLayout"): "styles",
}


def connection_exists(connections: List[Connection], source: NodeId, target: NodeId) -> bool:
    """True if ``source`` and ``target`` are already linked in either direction."""

    return any(
        (conn.source == source and conn.target == target)
        or (conn.source == target and conn.target == source)
        for conn in connections
    )


def connection_label(source: Optional[Node], target: Optional[Node]) -> Optional[str]:
    if source is None or target is None:
        return None
    return CONNECTION_LABELS.get((source.type, target.type))


def new_connection_id(source: NodeId, target: NodeId) -> str:
    return f"edge-{source}-{target}-{uuid.uuid4().hex[:8]}"


def add_connection(
    connections: List[Connection],
    source: NodeId,
    target: NodeId,
    kind: Optional[str] = None,
) -> List[Connection]:
    if source == target or connection_exists(connections, source, target):
        return connections
    return connections + [Connection(new_connection_id(source, target), source, target, kind)]


def remove_connection(connections: List[Connection], connection_id: str) -> List[Connection]:
    kept = [conn for conn in connections if conn.id != connection_id]
    return connections if len(kept) == len(connections) else kept


def remove_node_connections(connections: List[Connection], node_id: NodeId) -> List[Connection]:
    kept = [conn for conn in connections if conn.source != node_id and conn.target != node_id]
    return connections if len(kept) == len(connections) else kept


__all__ = [
    "CONNECTION_LABELS",
    "add_connection",
    "connection_exists",
    "connection_label",
    "new_connection_id",
    "remove_connection",
    "remove_node_connections",
]
