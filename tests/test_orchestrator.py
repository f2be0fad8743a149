import logging

import numpy as np

from planning_canvas import orchestrator
from planning_canvas.model import Connection, Node, NodeMetadata, Position, Size


def _persona(name):
    return {"name": name, "role": "User"}


def test_unknown_stage_passes_through():
    nodes = [Node("n1", "note", Position(0.0, 0.0), Size(10.0, 10.0))]
    connections = [Connection("c1", "n1", "n1")]
    last = {"x": "y"}

    result = orchestrator.reconcile(nodes, connections, "ux-review-check", {"anything": 1}, last)

    assert result.nodes is nodes
    assert result.connections is connections
    assert result.last_processed is last
    assert not result.changed and not result.skipped and result.error is None


def test_failure_keeps_inputs_and_reports_error(monkeypatch, caplog):
    class Exploding:
        def reconcile(self, nodes, payload, **kwargs):
            raise RuntimeError("boom")

    monkeypatch.setattr(orchestrator, "get_reconciler", lambda stage_id: Exploding())
    nodes = []
    last = {}

    with caplog.at_level(logging.ERROR, logger="planning_canvas.orchestrator"):
        result = orchestrator.reconcile(nodes, [], "ideation-discovery", {"appName": "Foo"}, last)

    assert result.nodes is nodes
    assert result.last_processed is last
    assert isinstance(result.error, RuntimeError)
    assert "keeping current canvas" in caplog.text


def test_last_processed_is_not_mutated():
    last = {}

    result = orchestrator.reconcile([], [], "ideation-discovery", {"appName": "Foo"}, last)

    assert last == {}
    assert set(result.last_processed) == {"ideation-discovery"}


def test_changed_payload_is_reprocessed():
    first = orchestrator.reconcile([], [], "ideation-discovery", {"appName": "Foo"}, {})

    second = orchestrator.reconcile(
        first.nodes, [], "ideation-discovery", {"appName": "Bar"}, first.last_processed
    )

    assert not second.skipped
    assert second.changed
    assert second.last_processed["ideation-discovery"] != first.last_processed["ideation-discovery"]


def test_prune_removes_only_stale_generated_nodes():
    rng = np.random.default_rng(0)
    result = orchestrator.reconcile(
        [], [], "ideation-discovery", {"userPersonas": [_persona("A"), _persona("B")]}, {}, rng=rng
    )
    custom = Node(
        "mine",
        "userPersona",
        Position(0.0, 0.0),
        Size(160.0, 140.0),
        data={"name": "Z", "role": "User"},
        metadata=NodeMetadata(stage="ideation-discovery", custom=True),
    )
    nodes = result.nodes + [custom]

    pruned = orchestrator.prune(nodes, "ideation-discovery", {"userPersonas": [_persona("A")]})

    assert sorted(node.data["name"] for node in pruned) == ["A", "Z"]


def test_prune_is_noop_for_absent_collections():
    result = orchestrator.reconcile([], [], "ideation-discovery", {"userPersonas": [_persona("A")]}, {})

    assert orchestrator.prune(result.nodes, "ideation-discovery", {"appName": "Foo"}) is result.nodes
    assert orchestrator.prune(result.nodes, "export-handoff", {}) is result.nodes
