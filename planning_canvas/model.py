"""Core data structures shared by the reconciliation and layout pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

NodeId = str
StageId = str
Fingerprint = str


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Position":
        return cls(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Size":
        return cls(float(raw.get("width", 0.0)), float(raw.get("height", 0.0)))


@dataclass(frozen=True)
class NodeMetadata:
    """Ownership and matching information attached to every node."""

    stage: StageId
    source_id: Optional[str] = None
    node_type: Optional[str] = None
    custom: bool = False
    generated: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"stage": self.stage}
        if self.source_id is not None:
            out["sourceId"] = self.source_id
        if self.node_type is not None:
            out["nodeType"] = self.node_type
        if self.custom:
            out["custom"] = True
        if self.generated:
            out["generated"] = True
        if self.extra:
            out["extra"] = dict(self.extra)
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "NodeMetadata":
        return cls(
            stage=str(raw.get("stage", "")),
            source_id=raw.get("sourceId"),
            node_type=raw.get("nodeType"),
            custom=bool(raw.get("custom", False)),
            generated=bool(raw.get("generated", False)),
            extra=dict(raw.get("extra") or {}),
        )


@dataclass(frozen=True)
class Node:
    """A canvas node.

    Nodes are values: reconcilers never mutate one, they build a replacement
    with :meth:`evolve` so the owning layer can compare lists by identity.
    """

    id: NodeId
    type: str
    position: Position
    size: Size
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: NodeMetadata = field(default_factory=lambda: NodeMetadata(stage=""))

    @property
    def stage(self) -> StageId:
        return self.metadata.stage

    def evolve(self, **changes: Any) -> "Node":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
            "data": dict(self.data),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Node":
        return cls(
            id=str(raw["id"]),
            type=str(raw.get("type", "default")),
            position=Position.from_dict(raw.get("position") or {}),
            size=Size.from_dict(raw.get("size") or {}),
            data=dict(raw.get("data") or {}),
            metadata=NodeMetadata.from_dict(raw.get("metadata") or {}),
        )


@dataclass(frozen=True)
class Connection:
    id: str
    source: NodeId
    target: NodeId
    kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "source": self.source, "target": self.target}
        if self.kind is not None:
            out["kind"] = self.kind
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Connection":
        return cls(
            id=str(raw["id"]),
            source=str(raw["source"]),
            target=str(raw["target"]),
            kind=raw.get("kind"),
        )


@dataclass
class ProcessorState:
    """Canvas state owned by the session layer for the lifetime of a project."""

    nodes: List[Node] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    last_processed: Dict[StageId, Fingerprint] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "connections": [conn.to_dict() for conn in self.connections],
            "lastProcessedData": dict(self.last_processed),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ProcessorState":
        return cls(
            nodes=[Node.from_dict(item) for item in raw.get("nodes") or []],
            connections=[Connection.from_dict(item) for item in raw.get("connections") or []],
            last_processed={
                str(key): str(value) for key, value in (raw.get("lastProcessedData") or {}).items()
            },
        )


@dataclass
class ReconcileResult:
    nodes: List[Node]
    connections: List[Connection]
    last_processed: Dict[StageId, Fingerprint]
    changed: bool = False
    skipped: bool = False
    error: Optional[BaseException] = None


# Interaction intents emitted by the rendering surface. The session is the
# only consumer allowed to apply them to the canonical node list.


@dataclass(frozen=True)
class UpdateNodeIntent:
    node_id: NodeId
    patch: Dict[str, Any]
    kind: str = "update"


@dataclass(frozen=True)
class MoveNodeIntent:
    node_id: NodeId
    position: Position
    kind: str = "move"


@dataclass(frozen=True)
class DeleteNodeIntent:
    node_id: NodeId
    kind: str = "delete"


@dataclass(frozen=True)
class CreateNodeIntent:
    node_type: str
    stage: StageId
    data: Dict[str, Any] = field(default_factory=dict)
    preferred_position: Optional[Position] = None
    kind: str = "create"


@dataclass(frozen=True)
class ConnectIntent:
    source: NodeId
    target: NodeId
    connection_kind: Optional[str] = None
    kind: str = "connect"


@dataclass(frozen=True)
class DisconnectIntent:
    connection_id: str
    kind: str = "disconnect"


Intent = Union[
    UpdateNodeIntent,
    MoveNodeIntent,
    DeleteNodeIntent,
    CreateNodeIntent,
    ConnectIntent,
    DisconnectIntent,
]


__all__ = [
    "Connection",
    "ConnectIntent",
    "CreateNodeIntent",
    "DeleteNodeIntent",
    "DisconnectIntent",
    "Fingerprint",
    "Intent",
    "MoveNodeIntent",
    "Node",
    "NodeId",
    "NodeMetadata",
    "Position",
    "ProcessorState",
    "ReconcileResult",
    "Size",
    "StageId",
    "UpdateNodeIntent",
]
