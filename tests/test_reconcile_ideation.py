import numpy as np

from planning_canvas import orchestrator
from planning_canvas.model import Node, NodeMetadata, Position, Size
from planning_canvas.placement import GRID_DESCRIPTORS, SEMANTIC_REGIONS

STAGE = "ideation-discovery"


def _run(nodes, payload, last_processed=None):
    return orchestrator.reconcile(
        nodes, [], STAGE, payload, last_processed or {}, rng=np.random.default_rng(0)
    )


def _of_type(nodes, node_type):
    return [node for node in nodes if node.type == node_type]


def _persona(name, role):
    return {"name": name, "role": role, "painPoint": f"{name} is busy"}


def test_app_name_creates_single_node_at_semantic_region():
    result = _run([], {"appName": "Foo"})

    app_nodes = _of_type(result.nodes, "appName")
    assert len(result.nodes) == 1
    assert len(app_nodes) == 1
    assert app_nodes[0].data["value"] == "Foo"
    assert app_nodes[0].data["name_history"] == []
    assert app_nodes[0].position == SEMANTIC_REGIONS["appName"]
    assert app_nodes[0].metadata.stage == STAGE
    assert result.changed
    assert STAGE in result.last_processed


def test_app_name_update_keeps_position_and_identity():
    existing = Node(
        id="app-1",
        type="appName",
        position=Position(100.0, 100.0),
        size=Size(280.0, 80.0),
        data={"value": "Foo"},
        metadata=NodeMetadata(stage=STAGE),
    )

    result = _run([existing], {"appName": "Bar"})

    app_nodes = _of_type(result.nodes, "appName")
    assert len(app_nodes) == 1
    assert app_nodes[0].id == "app-1"
    assert app_nodes[0].position == Position(100.0, 100.0)
    assert app_nodes[0].data["value"] == "Bar"
    assert app_nodes[0].data["name_history"] == ["Foo"]


def test_same_payload_twice_returns_same_list():
    payload = {"appName": "Foo", "tagline": "Plan faster", "userPersonas": [_persona("Ana", "Designer")]}

    first = _run([], payload)
    second = _run(first.nodes, payload, first.last_processed)
    third = _run(second.nodes, payload, second.last_processed)

    assert second.skipped
    assert second.nodes is first.nodes
    assert third.nodes is first.nodes


def test_unchanged_content_without_fingerprint_returns_same_list():
    payload = {"appName": "Foo", "techStack": ["React", "Postgres"]}
    first = _run([], payload)

    again = _run(first.nodes, payload)

    assert not again.skipped
    assert not again.changed
    assert again.nodes is first.nodes


def test_personas_are_additive():
    first = _run([], {"userPersonas": [_persona("Ana", "Designer"), _persona("Bo", "Engineer")]})
    assert len(_of_type(first.nodes, "userPersona")) == 2

    grown = _run(
        first.nodes,
        {
            "userPersonas": [
                _persona("Ana", "Designer"),
                _persona("Bo", "Engineer"),
                _persona("Cy", "Manager"),
            ]
        },
    )
    personas = _of_type(grown.nodes, "userPersona")
    assert len(personas) == 3
    assert {node.id for node in _of_type(first.nodes, "userPersona")} <= {node.id for node in personas}

    shrunk = _run(grown.nodes, {"userPersonas": [_persona("Ana", "Designer")]})
    assert shrunk.nodes is grown.nodes
    assert {node.data["name"] for node in _of_type(shrunk.nodes, "userPersona")} == {"Ana", "Bo", "Cy"}


def test_personas_fill_grid_cells_in_order():
    result = _run([], {"userPersonas": [_persona(f"P{idx}", "User") for idx in range(6)]})

    grid = GRID_DESCRIPTORS["userPersona"]
    positions = [node.position for node in _of_type(result.nodes, "userPersona")]
    assert positions == [grid.cell(idx) for idx in range(6)]


def test_persona_matching_ignores_case_and_spacing():
    first = _run([], {"userPersonas": [_persona("Ana Lee", "Designer")]})

    again = _run(first.nodes, {"userPersonas": [{"name": "ana  lee", "role": "DESIGNER"}]})

    assert again.nodes is first.nodes


def test_persona_nodes_without_source_id_match_by_data():
    legacy = Node(
        id="persona-old",
        type="userPersona",
        position=Position(0.0, 0.0),
        size=Size(160.0, 140.0),
        data={"name": "Ana", "role": "Designer"},
        metadata=NodeMetadata(stage=STAGE),
    )

    result = _run([legacy], {"userPersonas": [_persona("Ana", "Designer")]})

    assert result.nodes == [legacy]


def test_target_users_fallback_creates_one_persona():
    result = _run([], {"targetUsers": "Small agencies"})

    personas = _of_type(result.nodes, "userPersona")
    assert len(personas) == 1
    assert personas[0].data["name"] == "Target User"
    assert personas[0].data["pain_point"] == "Small agencies"


def test_competitor_data_preferred_over_competitors():
    result = _run(
        [],
        {
            "competitors": [{"name": "Old"}],
            "competitorData": [{"name": "Acme", "strengths": ["price"]}, {"name": "acme"}],
        },
    )

    competitors = _of_type(result.nodes, "competitor")
    assert [node.data["name"] for node in competitors] == ["Acme"]
    assert competitors[0].data["strengths"] == ["price"]


def test_other_stage_nodes_pass_through():
    foreign = Node(
        id="screen-1",
        type="screen",
        position=Position(5.0, 5.0),
        size=Size(180.0, 100.0),
        data={"name": "Home"},
        metadata=NodeMetadata(stage="structure-flow"),
    )

    result = _run([foreign], {"appName": "Foo", "mission": "ignored", "missionStatement": "Help teams"})

    assert result.nodes[0] is foreign
    mission = _of_type(result.nodes, "mission")
    assert mission[0].data["value"] == "Help teams"
