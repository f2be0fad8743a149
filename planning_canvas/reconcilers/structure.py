"""Structure & flow: screens, user flows and the state/data-flow summary."""

from __future__ import annotations

from typing import Optional, Tuple

from .. import stages
from ..model import Node
from ..payloads import Screen, StructurePayload
from .base import CollectionField, SingletonField, StageReconciler


def _data_flow(payload: StructurePayload) -> Optional[Tuple[str, str]]:
    if payload.state_management is None and payload.data_flow is None:
        return None
    return (payload.state_management or "", payload.data_flow or "")


def _name_key(node: Node) -> Optional[str]:
    name = node.data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return Screen(name=name).natural_key


RECONCILER = StageReconciler(
    stage_id=stages.STRUCTURE,
    payload_type=StructurePayload,
    singletons=(
        SingletonField(
            "dataFlow",
            _data_flow,
            lambda value: {"state_management": value[0], "data_flow": value[1]},
        ),
    ),
    collections=(
        CollectionField(
            "screen",
            lambda p: p.screens,
            lambda screen: screen.natural_key,
            lambda screen: {"name": screen.name, "screen_type": screen.type, "description": screen.description},
            node_key=_name_key,
        ),
        CollectionField(
            "userFlow",
            lambda p: p.user_flows,
            lambda flow: flow.natural_key,
            lambda flow: {"name": flow.name, "steps": list(flow.steps), "description": flow.description},
            node_key=_name_key,
        ),
    ),
)
