import asyncio

import numpy as np
import pytest

from planning_canvas import session as session_module
from planning_canvas.config import EngineConfig, SessionConfig
from planning_canvas.model import (
    ConnectIntent,
    CreateNodeIntent,
    DeleteNodeIntent,
    DisconnectIntent,
    MoveNodeIntent,
    Position,
    UpdateNodeIntent,
)
from planning_canvas.session import CanvasSession

IDEATION = "ideation-discovery"


def _session(**session_options):
    config = EngineConfig(session=SessionConfig(**session_options))
    return CanvasSession(config=config, rng=np.random.default_rng(0))


def _by_type(session, node_type):
    return [node for node in session.nodes if node.type == node_type]


def test_reconcile_stage_adds_summary_node():
    session = _session()

    result = session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert result.changed
    assert _by_type(session, "appName")[0].data["value"] == "Foo"
    summary = _by_type(session, "projectSummary")[0]
    assert summary.metadata.generated
    assert "Project Analysis for Foo" in summary.data["content"]


def test_summary_can_be_disabled():
    session = _session(project_summary=False)

    session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert [node.type for node in session.nodes] == ["appName"]


def test_unchanged_reconcile_does_not_notify():
    session = _session()
    session.reconcile_stage(IDEATION, {"appName": "Foo"})
    seen = []
    session.subscribe(seen.append)

    result = session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert result.skipped
    assert seen == []


def test_reentrant_reconcile_is_skipped():
    session = _session()
    nested = []

    def listener(state):
        nested.append(session.reconcile_stage(IDEATION, {"appName": "Nested"}))

    session.subscribe(listener)
    session.reconcile_stage(IDEATION, {"appName": "Outer"})

    assert nested == [None]
    assert _by_type(session, "appName")[0].data["value"] == "Outer"
    assert not session.reconciling


def test_listener_errors_do_not_break_state_updates():
    session = _session()

    def broken(state):
        raise RuntimeError("listener bug")

    session.subscribe(broken)
    session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert _by_type(session, "appName")


def test_unsubscribe_stops_notifications():
    session = _session()
    seen = []
    unsubscribe = session.subscribe(seen.append)
    unsubscribe()

    session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert seen == []


def test_debounce_coalesces_bursts():
    session = _session(debounce_seconds=0.01)
    calls = []
    session.subscribe(lambda state: calls.append(len(state.nodes)))

    async def burst():
        for name in ("F", "Fo", "Foo"):
            session.schedule_reconcile(IDEATION, {"appName": name})
        await session.flush()

    asyncio.run(burst())

    assert _by_type(session, "appName")[0].data["value"] == "Foo"
    assert _by_type(session, "appName")[0].data["name_history"] == []
    assert len(calls) == 1
    assert session._pending == {}


def test_prune_stage_drops_stale_nodes_and_their_connections():
    session = _session(project_summary=False)
    session.reconcile_stage(IDEATION, {"userPersonas": [{"name": "A", "role": "x"}, {"name": "B", "role": "x"}]})
    a, b = _by_type(session, "userPersona")
    session.dispatch(ConnectIntent(a.id, b.id))

    session.reconcile_stage(IDEATION, {"userPersonas": [{"name": "A", "role": "x"}]})
    removed = session.prune_stage(IDEATION)

    assert removed == 1
    assert [node.id for node in session.nodes] == [a.id]
    assert session.state.connections == []
    assert session.prune_stage(IDEATION) == 0
    assert session.prune_stage("feature-planning") == 0


def test_dispatch_update_and_move():
    session = _session(project_summary=False)
    session.reconcile_stage(IDEATION, {"appName": "Foo"})
    node = session.nodes[0]

    assert session.dispatch(UpdateNodeIntent(node.id, {"note": "hi"}))
    assert session.dispatch(MoveNodeIntent(node.id, Position(1.0, 2.0)))

    moved = session.node(node.id)
    assert moved.data == {"value": "Foo", "name_history": [], "note": "hi"}
    assert moved.position == Position(1.0, 2.0)


def test_dispatch_unknown_node_is_rejected():
    session = _session()

    assert not session.dispatch(MoveNodeIntent("ghost", Position(0.0, 0.0)))
    assert not session.dispatch(DeleteNodeIntent("ghost"))
    assert not session.dispatch(ConnectIntent("ghost", "other"))


def test_create_marks_node_custom_near_centre():
    session = _session()

    assert session.dispatch(CreateNodeIntent("note", IDEATION, {"text": "idea"}))

    node = session.nodes[0]
    assert node.metadata.custom
    assert node.position == Position(400.0, 300.0)
    assert node.data == {"text": "idea"}


def test_delete_removes_node_connections():
    session = _session(project_summary=False)
    session.reconcile_stage(IDEATION, {"appName": "Foo", "tagline": "Bar", "platform": "web"})
    app, tagline, platform = session.nodes
    session.dispatch(ConnectIntent(app.id, tagline.id))
    session.dispatch(ConnectIntent(platform.id, tagline.id))

    assert session.dispatch(DeleteNodeIntent(app.id))

    assert session.node(app.id) is None
    assert [(conn.source, conn.target) for conn in session.state.connections] == [(platform.id, tagline.id)]


def test_connect_is_idempotent_and_labelled():
    session = _session(project_summary=False)
    session.reconcile_stage(IDEATION, {"appName": "Foo", "tagline": "Bar"})
    app, tagline = session.nodes

    assert session.dispatch(ConnectIntent(app.id, tagline.id))
    assert not session.dispatch(ConnectIntent(app.id, tagline.id))
    assert not session.dispatch(ConnectIntent(tagline.id, app.id))

    (conn,) = session.state.connections
    assert conn.kind == "described by"

    assert session.dispatch(DisconnectIntent(conn.id))
    assert not session.dispatch(DisconnectIntent(conn.id))
    assert session.state.connections == []


def test_auto_layout_merges_positions_by_id():
    session = _session(project_summary=False)
    session.reconcile_stage(IDEATION, {"appName": "Foo", "tagline": "Bar"})

    result = asyncio.run(session.auto_layout(options={"algorithm": "layered"}))

    assert not result.used_fallback
    assert {node.id for node in session.nodes} == {node.id for node in result.nodes}
    positions = {node.id: node.position for node in result.nodes}
    for node in session.nodes:
        assert node.position == positions[node.id]


def test_reconciling_flag_released_when_reconcile_raises(monkeypatch):
    session = _session()

    def boom(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(session_module.orchestrator, "reconcile", boom)

    with pytest.raises(RuntimeError):
        session.reconcile_stage(IDEATION, {"appName": "Foo"})

    assert not session.reconciling
    monkeypatch.undo()
    assert session.reconcile_stage(IDEATION, {"appName": "Foo"}).changed


def test_summary_refreshes_when_only_unprojected_fields_change():
    session = _session()
    session.reconcile_stage(IDEATION, {"appName": "Foo"})
    assert _by_type(session, "projectSummary")[0].data["total_items"] == 1

    result = session.reconcile_stage(IDEATION, {"appName": "Foo", "notes": "draft"})

    assert not result.changed and not result.skipped
    assert _by_type(session, "projectSummary")[0].data["total_items"] == 2
