"""Generic diff of a stage payload against the nodes that stage owns."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from ..config import PlacementConfig
from ..factory import create_node
from ..model import Node

logger = logging.getLogger(__name__)

Rendered = Dict[str, Any]


@dataclass(frozen=True)
class SingletonField:
    """A payload field projected onto at most one node per stage.

    ``extract`` returns ``None`` when the field is absent; ``render`` turns the
    extracted value into the node's data. With ``history_key`` set, the value
    being replaced is appended to that list on update.
    """

    node_type: str
    extract: Callable[[Any], Any]
    render: Callable[[Any], Rendered]
    history_key: Optional[str] = None
    value_key: str = "value"


@dataclass(frozen=True)
class CollectionField:
    """A payload list projected onto one node per entry, matched by natural key.

    Keys are stored in ``metadata.source_id`` at creation. ``key_prefix``
    separates collections that share a node type.
    """

    node_type: str
    extract: Callable[[Any], Optional[Sequence[Any]]]
    natural_key: Callable[[Any], Optional[str]]
    render: Callable[[Any], Rendered]
    refresh: bool = False
    key_prefix: str = ""
    node_key: Optional[Callable[[Node], Optional[str]]] = None


def _differs(data: Dict[str, Any], rendered: Rendered) -> bool:
    return any(data.get(key) != value for key, value in rendered.items())


@dataclass
class _Pass:
    foreign: List[Node]
    owned: List[Node]
    created: int = 0
    updated: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated)

    def context(self) -> List[Node]:
        return self.foreign + self.owned


@dataclass
class StageReconciler:
    stage_id: str
    payload_type: type
    singletons: Tuple[SingletonField, ...] = ()
    collections: Tuple[CollectionField, ...] = ()

    def coerce(self, payload: Any) -> Any:
        """Accept this stage's payload record or a raw mapping; anything else is a caller error."""

        if isinstance(payload, self.payload_type):
            return payload
        if isinstance(payload, Mapping):
            return self.payload_type.from_mapping(payload)
        raise TypeError(
            f"{self.stage_id} expects {self.payload_type.__name__}, got {type(payload).__name__}"
        )

    def _key_of(self, decl: CollectionField, node: Node) -> Optional[str]:
        key = node.metadata.source_id
        if key is None and decl.node_key is not None:
            key = decl.node_key(node)
        if key is None or not key.startswith(decl.key_prefix):
            return None
        return key

    def _apply_singleton(
        self,
        decl: SingletonField,
        payload: Any,
        state: _Pass,
        rng: Optional[np.random.Generator],
        config: Optional[PlacementConfig],
    ) -> None:
        value = decl.extract(payload)
        if value is None:
            return
        rendered = decl.render(value)
        for idx, node in enumerate(state.owned):
            if node.type != decl.node_type:
                continue
            if not _differs(node.data, rendered):
                return
            data = dict(node.data)
            if decl.history_key is not None:
                previous = node.data.get(decl.value_key)
                history = [item for item in node.data.get(decl.history_key) or [] if item]
                if previous and previous != rendered.get(decl.value_key):
                    history.append(previous)
                data[decl.history_key] = history
            data.update(rendered)
            state.owned[idx] = node.evolve(data=data)
            state.updated += 1
            logger.debug("Updated %s node %s", decl.node_type, node.id)
            return

        node = create_node(decl.node_type, self.stage_id, rendered, state.context(), rng=rng, config=config)
        if decl.history_key is not None:
            node = node.evolve(data={**node.data, decl.history_key: []})
        state.owned.append(node)
        state.created += 1
        logger.debug("Created %s node %s", decl.node_type, node.id)

    def _apply_collection(
        self,
        decl: CollectionField,
        payload: Any,
        state: _Pass,
        rng: Optional[np.random.Generator],
        config: Optional[PlacementConfig],
    ) -> None:
        entries = decl.extract(payload)
        if entries is None:
            return
        index: Dict[str, int] = {}
        for idx, node in enumerate(state.owned):
            if node.type != decl.node_type:
                continue
            key = self._key_of(decl, node)
            if key is not None:
                index.setdefault(key, idx)

        seen: Set[str] = set()
        for entry in entries:
            key = decl.natural_key(entry)
            if not key or key in seen:
                continue
            seen.add(key)
            rendered = decl.render(entry)
            idx = index.get(key)
            if idx is None:
                node = create_node(
                    decl.node_type,
                    self.stage_id,
                    rendered,
                    state.context(),
                    source_id=key,
                    rng=rng,
                    config=config,
                )
                index[key] = len(state.owned)
                state.owned.append(node)
                state.created += 1
                logger.debug("Created %s node %s for key %r", decl.node_type, node.id, key)
            elif decl.refresh:
                node = state.owned[idx]
                if _differs(node.data, rendered):
                    state.owned[idx] = node.evolve(data={**node.data, **rendered})
                    state.updated += 1

    def reconcile(
        self,
        nodes: List[Node],
        payload: Any,
        *,
        rng: Optional[np.random.Generator] = None,
        config: Optional[PlacementConfig] = None,
    ) -> List[Node]:
        """Return ``nodes`` with this stage's nodes brought in line with ``payload``.

        Nodes owned by other stages pass through untouched. When nothing needs
        to change the input list itself is returned.
        """

        payload = self.coerce(payload)
        state = _Pass(
            foreign=[node for node in nodes if node.stage != self.stage_id],
            owned=[node for node in nodes if node.stage == self.stage_id],
        )
        for singleton in self.singletons:
            self._apply_singleton(singleton, payload, state, rng, config)
        for collection in self.collections:
            self._apply_collection(collection, payload, state, rng, config)

        if not state.changed:
            return nodes
        logger.info(
            "Reconciled %s: %d created, %d updated", self.stage_id, state.created, state.updated
        )
        return state.context()

    def prune(self, nodes: List[Node], payload: Any) -> List[Node]:
        """Drop owned collection nodes whose key no longer appears in a present collection.

        Absent collections and user-created (``custom``) nodes are left alone.
        """

        payload = self.coerce(payload)
        present: List[Tuple[CollectionField, Set[str]]] = []
        for decl in self.collections:
            entries = decl.extract(payload)
            if entries is None:
                continue
            keys = {key for key in (decl.natural_key(entry) for entry in entries) if key}
            present.append((decl, keys))
        if not present:
            return nodes

        kept: List[Node] = []
        removed = 0
        for node in nodes:
            if node.stage == self.stage_id and not node.metadata.custom:
                stale = False
                for decl, keys in present:
                    if node.type != decl.node_type:
                        continue
                    key = self._key_of(decl, node)
                    if key is not None and key not in keys:
                        stale = True
                        break
                if stale:
                    removed += 1
                    continue
            kept.append(node)

        if not removed:
            return nodes
        logger.info("Pruned %d stale node(s) from %s", removed, self.stage_id)
        return kept


__all__ = ["CollectionField", "SingletonField", "StageReconciler"]
