"""Construction of new canvas nodes."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .config import PlacementConfig
from .model import Node, NodeMetadata, Position
from .placement import node_size_for, place


def new_node_id(node_type: str) -> str:
    return f"{node_type}-{uuid.uuid4().hex[:8]}"


def create_node(
    node_type: str,
    stage_id: str,
    data: Dict[str, Any],
    existing_nodes: Sequence[Node],
    *,
    source_id: Optional[str] = None,
    custom: bool = False,
    generated: bool = False,
    preferred_position: Optional[Position] = None,
    is_user_created: bool = False,
    rng: Optional[np.random.Generator] = None,
    config: Optional[PlacementConfig] = None,
) -> Node:
    """Build a node of ``node_type`` owned by ``stage_id`` and place it against ``existing_nodes``."""

    size = node_size_for(node_type)
    position = place(
        existing_nodes,
        size,
        node_type,
        preferred_position=preferred_position,
        stage_id=stage_id,
        is_user_created=is_user_created,
        rng=rng,
        config=config,
    )
    return Node(
        id=new_node_id(node_type),
        type=node_type,
        position=position,
        size=size,
        data=dict(data),
        metadata=NodeMetadata(
            stage=stage_id,
            source_id=source_id,
            node_type=node_type,
            custom=custom,
            generated=generated,
        ),
    )


__all__ = ["create_node", "new_node_id"]
