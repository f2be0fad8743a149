import numpy as np
import pytest

from planning_canvas import orchestrator
from planning_canvas.payloads import FeaturePayload, IdeationPayload
from planning_canvas.reconcilers import REGISTRY
from planning_canvas.reconcilers.features import DEFAULT_SUB_FEATURES, pack_title


def _run(stage_id, nodes, payload):
    return orchestrator.reconcile(nodes, [], stage_id, payload, {}, rng=np.random.default_rng(1))


def _of_type(nodes, node_type):
    return [node for node in nodes if node.type == node_type]


def test_registry_covers_projected_stages():
    assert set(REGISTRY) == {
        "ideation-discovery",
        "feature-planning",
        "structure-flow",
        "interface-interaction",
        "architecture-design",
        "user-auth-flow",
    }


def test_feature_packs_and_custom_features_share_type_without_colliding():
    payload = {
        "selectedFeaturePacks": ["auth", "ai", "auth"],
        "customFeatures": [{"id": "auth", "name": "Magic links", "priority": "must"}],
        "naturalLanguageFeatures": "A planner for agencies",
    }

    result = _run("feature-planning", [], payload)

    features = _of_type(result.nodes, "feature")
    assert [node.metadata.source_id for node in features] == ["pack:auth", "pack:ai", "custom:auth"]
    auth = features[0]
    assert auth.data["title"] == "Authentication & Users"
    assert auth.data["sub_features"] == list(DEFAULT_SUB_FEATURES["auth"])
    assert features[1].data["sub_features"] == []
    assert features[2].data["is_custom"] is True
    assert features[2].data["priority"] == "must"
    assert not features[2].metadata.custom
    assert _of_type(result.nodes, "featureDescription")[0].data["content"] == "A planner for agencies"


def test_custom_feature_refreshes_in_place():
    first = _run("feature-planning", [], {"customFeatures": [{"id": 1, "name": "Export"}]})
    node = _of_type(first.nodes, "feature")[0]

    second = orchestrator.reconcile(
        first.nodes,
        [],
        "feature-planning",
        {"customFeatures": [{"id": 1, "name": "Export to PDF", "complexity": "high"}]},
        first.last_processed,
    )

    refreshed = _of_type(second.nodes, "feature")
    assert len(refreshed) == 1
    assert refreshed[0].id == node.id
    assert refreshed[0].position == node.position
    assert refreshed[0].data["title"] == "Export to PDF"
    assert refreshed[0].data["complexity"] == "high"


def test_empty_architecture_prep_creates_no_blueprint():
    result = _run("feature-planning", [], {"architecturePrep": {"screens": [], "apiRoutes": []}})

    assert result.nodes == []
    assert not result.changed


def test_blueprint_summarises_counts():
    result = _run(
        "feature-planning",
        [],
        {"architecturePrep": {"screens": ["Home", "Settings"], "apiRoutes": [{"name": "/api"}], "components": []}},
    )

    blueprint = _of_type(result.nodes, "architectureBlueprint")[0]
    assert "2 screens, 1 API routes, and 0 components" in blueprint.data["content"]
    assert blueprint.data["screens"] == ["Home", "Settings"]


def test_pack_title_falls_back_to_capitalised_id():
    assert pack_title("crud") == "Data Management"
    assert pack_title("gaming") == "Gaming"


def test_structure_screens_flows_and_data_flow():
    payload = {
        "screens": [{"id": "s1", "name": "Home", "type": "core"}, {"name": "Sign In", "type": "auth"}],
        "userFlows": [{"name": "Onboarding", "steps": ["Sign up", "Tour"]}],
        "stateManagement": "redux",
    }

    result = _run("structure-flow", [], payload)

    screens = _of_type(result.nodes, "screen")
    assert [node.data["name"] for node in screens] == ["Home", "Sign In"]
    assert screens[1].data["screen_type"] == "auth"
    assert _of_type(result.nodes, "userFlow")[0].data["steps"] == ["Sign up", "Tour"]
    flow = _of_type(result.nodes, "dataFlow")[0]
    assert flow.data == {"state_management": "redux", "data_flow": ""}

    renamed = _run("structure-flow", result.nodes, {"screens": [{"id": "s1", "name": "Dashboard"}]})
    assert renamed.nodes is result.nodes


def test_interface_singletons_and_lofi_layouts():
    payload = {
        "selectedDesignSystem": "material",
        "customBranding": {"primaryColor": "#000", "fontFamily": "Inter"},
        "layoutBlocks": [{"type": "header"}, {"type": "grid"}],
        "lofiLayouts": [{"layoutId": "l1", "templateName": "Landing"}, {"templateName": "Dashboard"}],
    }

    result = _run("interface-interaction", [], payload)

    assert _of_type(result.nodes, "designSystem")[0].data["value"] == "material"
    assert _of_type(result.nodes, "branding")[0].data["font_family"] == "Inter"
    assert _of_type(result.nodes, "layoutStructure")[0].data["blocks"] == ["header", "grid"]
    assert [node.metadata.source_id for node in _of_type(result.nodes, "lofiLayout")] == ["l1", "dashboard"]


def test_architecture_tables_routes_and_endpoints():
    payload = {
        "databaseSchema": [{"name": "users", "fields": [{"name": "id"}, "email"]}, {"name": "Users"}],
        "apiEndpoints": [{"method": "get", "path": "/users"}],
        "sitemap": [{"path": "/", "component": "Home"}, {"path": "/admin", "protected": True}],
    }

    result = _run("architecture-design", [], payload)

    tables = _of_type(result.nodes, "databaseTable")
    assert len(tables) == 1
    assert tables[0].data["fields"] == ["id", "email"]
    assert _of_type(result.nodes, "apiEndpoints")[0].data["endpoints"] == ["GET /users"]
    routes = _of_type(result.nodes, "route")
    assert [node.data["path"] for node in routes] == ["/", "/admin"]
    assert routes[1].data["protected"] is True


def test_auth_only_enabled_toggles_project():
    result = _run(
        "user-auth-flow",
        [],
        {
            "authMethods": [{"name": "Email", "enabled": True}, {"name": "SSO", "enabled": False}],
            "securityFeatures": [{"name": "2FA", "enabled": False}],
            "userRoles": [{"name": "Admin", "description": "everything"}],
        },
    )

    assert _of_type(result.nodes, "authMethods")[0].data["items"] == ["Email"]
    assert _of_type(result.nodes, "securityFeatures") == []
    assert _of_type(result.nodes, "userRoles")[0].data["items"] == [{"name": "Admin", "description": "everything"}]


def test_reconciler_accepts_its_payload_or_a_raw_mapping():
    ideation = REGISTRY["ideation-discovery"]

    from_record = ideation.reconcile([], IdeationPayload(app_name="Foo"), rng=np.random.default_rng(1))
    from_mapping = ideation.reconcile([], {"appName": "Foo"}, rng=np.random.default_rng(1))

    assert [node.data["value"] for node in from_record] == ["Foo"]
    assert [node.data for node in from_mapping] == [node.data for node in from_record]


def test_reconciler_rejects_another_stages_payload():
    ideation = REGISTRY["ideation-discovery"]

    with pytest.raises(TypeError, match="IdeationPayload"):
        ideation.reconcile([], FeaturePayload(selected_feature_packs=("auth",)))
    with pytest.raises(TypeError):
        ideation.prune([], ["appName"])
