"""Canvas session: the single owner of canvas state.

The session serialises reconciliation behind a reentrancy flag, debounces
bursts of stage updates, runs auto-layout and applies interaction intents.
Everything it calls is pure; only the session replaces ``state``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

import numpy as np

from . import orchestrator
from .config import EngineConfig, get_engine_config
from .connections import add_connection, connection_label, remove_connection, remove_node_connections
from .factory import create_node
from .insights import refresh_summary_node
from .layout import LayoutBackend, LayoutResult, layout
from .model import (
    ConnectIntent,
    CreateNodeIntent,
    DeleteNodeIntent,
    DisconnectIntent,
    Intent,
    MoveNodeIntent,
    Node,
    ProcessorState,
    ReconcileResult,
    UpdateNodeIntent,
)

logger = logging.getLogger(__name__)

Listener = Callable[[ProcessorState], None]


class CanvasSession:
    def __init__(
        self,
        state: Optional[ProcessorState] = None,
        *,
        config: Optional[EngineConfig] = None,
        backend: Optional[LayoutBackend] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.state = state if state is not None else ProcessorState()
        self.config = config if config is not None else get_engine_config()
        self.backend = backend
        self.rng = rng
        self.stage_data: Dict[str, Any] = {}
        self.reconciling = False
        self.last_error: Optional[BaseException] = None
        self._listeners: List[Listener] = []
        self._pending: Dict[str, "asyncio.Task[Optional[ReconcileResult]]"] = {}

    # -- state ---------------------------------------------------------------

    @property
    def nodes(self) -> List[Node]:
        return self.state.nodes

    def node(self, node_id: str) -> Optional[Node]:
        for node in self.state.nodes:
            if node.id == node_id:
                return node
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, **changes: Any) -> None:
        self.state = ProcessorState(
            nodes=changes.get("nodes", self.state.nodes),
            connections=changes.get("connections", self.state.connections),
            last_processed=changes.get("last_processed", self.state.last_processed),
        )
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("Canvas listener %r failed", listener)

    # -- reconciliation --------------------------------------------------------

    @contextmanager
    def _reconcile_guard(self) -> Iterator[None]:
        self.reconciling = True
        try:
            yield
        finally:
            self.reconciling = False

    def reconcile_stage(self, stage_id: str, data: Any) -> Optional[ReconcileResult]:
        """Reconcile one stage now; returns ``None`` when a reconciliation is already running."""

        if self.reconciling:
            logger.debug("Reconciliation in progress; skipping %s", stage_id)
            return None
        with self._reconcile_guard():
            self.stage_data[stage_id] = data
            result = orchestrator.reconcile(
                self.state.nodes,
                self.state.connections,
                stage_id,
                data,
                self.state.last_processed,
                rng=self.rng,
                config=self.config.placement,
            )
            self.last_error = result.error
            nodes = result.nodes
            if not result.skipped and result.error is None and self.config.session.project_summary:
                try:
                    nodes = refresh_summary_node(
                        nodes, self.stage_data, rng=self.rng, config=self.config.placement
                    )
                except Exception as exc:
                    logger.exception("Project summary refresh failed")
                    self.last_error = exc
            if nodes is not self.state.nodes or result.last_processed is not self.state.last_processed:
                self._replace(nodes=nodes, last_processed=result.last_processed)
        return result

    def schedule_reconcile(self, stage_id: str, data: Any) -> "asyncio.Task[Optional[ReconcileResult]]":
        """Debounced :meth:`reconcile_stage`; a newer call for the same stage replaces a pending one.

        Must be called from a running event loop.
        """

        pending = self._pending.get(stage_id)
        if pending is not None and not pending.done():
            pending.cancel()
        task = asyncio.get_running_loop().create_task(self._debounced(stage_id, data))
        self._pending[stage_id] = task
        return task

    async def _debounced(self, stage_id: str, data: Any) -> Optional[ReconcileResult]:
        try:
            await asyncio.sleep(self.config.session.debounce_seconds)
            return self.reconcile_stage(stage_id, data)
        finally:
            if self._pending.get(stage_id) is asyncio.current_task():
                del self._pending[stage_id]

    async def flush(self) -> None:
        """Wait for every pending debounced reconciliation."""

        while self._pending:
            waiting = list(self._pending.items())
            await asyncio.gather(*(task for _, task in waiting), return_exceptions=True)
            for stage_id, task in waiting:
                if self._pending.get(stage_id) is task:
                    del self._pending[stage_id]

    def prune_stage(self, stage_id: str) -> int:
        """Remove the stage's stale generated nodes; returns how many were dropped."""

        data = self.stage_data.get(stage_id)
        if data is None:
            return 0
        nodes = orchestrator.prune(self.state.nodes, stage_id, data)
        if nodes is self.state.nodes:
            return 0
        kept = {node.id for node in nodes}
        connections = self.state.connections
        for node in self.state.nodes:
            if node.id not in kept:
                connections = remove_node_connections(connections, node.id)
        removed = len(self.state.nodes) - len(nodes)
        self._replace(nodes=nodes, connections=connections)
        return removed

    # -- layout ----------------------------------------------------------------

    async def auto_layout(
        self, stage_id: Optional[str] = None, options: Optional[Mapping[str, Any]] = None
    ) -> LayoutResult:
        result = await layout(
            self.state.nodes,
            self.state.connections,
            stage_id,
            options,
            backend=self.backend,
            config=self.config.layout,
        )
        # Nodes may have been added or removed while the layout ran.
        positions = {node.id: node.position for node in result.nodes}
        nodes = [
            node.evolve(position=positions[node.id])
            if node.id in positions and positions[node.id] != node.position
            else node
            for node in self.state.nodes
        ]
        self._replace(nodes=nodes)
        return result

    # -- intents ---------------------------------------------------------------

    def dispatch(self, intent: Intent) -> bool:
        """Apply an interaction intent; returns whether canvas state changed."""

        handler = {
            "update": self._update,
            "move": self._move,
            "delete": self._delete,
            "create": self._create,
            "connect": self._connect,
            "disconnect": self._disconnect,
        }.get(intent.kind)
        if handler is None:
            logger.warning("Ignoring unknown intent %r", intent)
            return False
        return handler(intent)

    def _with_node(self, node_id: str, change: Callable[[Node], Node]) -> bool:
        for idx, node in enumerate(self.state.nodes):
            if node.id == node_id:
                nodes = list(self.state.nodes)
                nodes[idx] = change(node)
                self._replace(nodes=nodes)
                return True
        logger.warning("Intent targets unknown node %s", node_id)
        return False

    def _update(self, intent: UpdateNodeIntent) -> bool:
        return self._with_node(intent.node_id, lambda node: node.evolve(data={**node.data, **intent.patch}))

    def _move(self, intent: MoveNodeIntent) -> bool:
        return self._with_node(intent.node_id, lambda node: node.evolve(position=intent.position))

    def _delete(self, intent: DeleteNodeIntent) -> bool:
        nodes = [node for node in self.state.nodes if node.id != intent.node_id]
        if len(nodes) == len(self.state.nodes):
            logger.warning("Intent targets unknown node %s", intent.node_id)
            return False
        self._replace(nodes=nodes, connections=remove_node_connections(self.state.connections, intent.node_id))
        return True

    def _create(self, intent: CreateNodeIntent) -> bool:
        node = create_node(
            intent.node_type,
            intent.stage,
            intent.data,
            self.state.nodes,
            custom=True,
            preferred_position=intent.preferred_position,
            is_user_created=True,
            rng=self.rng,
            config=self.config.placement,
        )
        logger.info("Created %s node %s", node.type, node.id)
        self._replace(nodes=self.state.nodes + [node])
        return True

    def _connect(self, intent: ConnectIntent) -> bool:
        source, target = self.node(intent.source), self.node(intent.target)
        if source is None or target is None:
            logger.warning("Cannot connect %s -> %s: unknown node", intent.source, intent.target)
            return False
        kind = intent.connection_kind or connection_label(source, target)
        connections = add_connection(self.state.connections, intent.source, intent.target, kind)
        if connections is self.state.connections:
            return False
        self._replace(connections=connections)
        return True

    def _disconnect(self, intent: DisconnectIntent) -> bool:
        connections = remove_connection(self.state.connections, intent.connection_id)
        if connections is self.state.connections:
            return False
        self._replace(connections=connections)
        return True


__all__ = ["CanvasSession", "Listener"]
