import pytest

from planning_canvas.fingerprint import canonical_json, fingerprint
from planning_canvas.payloads import (
    ArchitecturePayload,
    AuthPayload,
    FeaturePayload,
    IdeationPayload,
    InterfacePayload,
    PayloadError,
    StructurePayload,
    parse_stage_payload,
    require_payload,
)


def test_unknown_stage_has_no_payload():
    assert parse_stage_payload("ux-review-check", {"appName": "Foo"}) is None
    with pytest.raises(PayloadError, match="unknown stage"):
        require_payload("nope", {})


def test_non_mapping_payload_reads_as_all_absent():
    payload = parse_stage_payload("ideation-discovery", ["not", "a", "mapping"])

    assert payload == IdeationPayload()


def test_ideation_blank_strings_are_absent():
    payload = IdeationPayload.from_mapping({"appName": "   ", "tagline": 42, "platform": "web"})

    assert payload.app_name is None
    assert payload.tagline is None
    assert payload.platform == "web"


def test_ideation_malformed_entries_dropped_individually():
    payload = IdeationPayload.from_mapping(
        {
            "userPersonas": [
                {"name": "Ana", "role": "Designer"},
                "garbage",
                {"painPoint": "no name"},
                {"name": "Bo"},
            ],
            "competitors": [{"name": "Legacy"}],
            "competitorData": [{"name": "Acme", "features": ["a", 3, ""]}, {"notes": "x"}],
        }
    )

    assert [p.name for p in payload.user_personas] == ["Ana", "Bo"]
    assert payload.user_personas[0].natural_key == "ana|designer"
    assert [c.name for c in payload.competitors] == ["Acme"]
    assert payload.competitors[0].features == ("a",)


def test_persona_key_normalises_case_and_whitespace():
    first = IdeationPayload.from_mapping({"userPersonas": [{"name": "Ana  Lee", "role": "Ops"}]})
    second = IdeationPayload.from_mapping({"userPersonas": [{"name": "ana lee", "role": " OPS "}]})

    assert first.user_personas[0].natural_key == second.user_personas[0].natural_key


def test_custom_feature_ids_coerced():
    payload = FeaturePayload.from_mapping(
        {
            "customFeatures": [
                {"id": 7, "name": "Export"},
                {"name": "Dark Mode"},
                {"description": "no id or name"},
            ],
            "architecturePrep": {"screens": [{"name": "Home"}, "Settings"], "apiRoutes": []},
        }
    )

    assert [f.natural_key for f in payload.custom_features] == ["custom:7", "custom:dark mode"]
    assert payload.custom_features[0].priority == "should"
    assert payload.architecture_prep.screens == ("Home", "Settings")
    assert payload.architecture_prep.screen_count == 2
    assert not payload.architecture_prep.is_empty


def test_structure_screens_keyed_by_id_or_name():
    payload = StructurePayload.from_mapping(
        {"screens": [{"id": "s1", "name": "Home"}, {"name": "Sign In"}, {"id": "s3"}]}
    )

    assert [s.natural_key for s in payload.screens] == ["s1", "sign in"]


def test_interface_branding_needs_a_colour_or_font():
    assert InterfacePayload.from_mapping({"customBranding": {"borderRadius": "4px"}}).custom_branding is None

    payload = InterfacePayload.from_mapping(
        {
            "customBranding": {"primaryColor": "#123456"},
            "lofiLayouts": [{"templateName": "Landing  Page", "layoutBlocks": [{"type": "hero"}, {}]}],
        }
    )

    assert payload.custom_branding.primary_color == "#123456"
    assert payload.lofi_layouts[0].natural_key == "landing page"
    assert payload.lofi_layouts[0].block_types == ("hero", "block")


def test_architecture_endpoint_method_upper_cased():
    payload = ArchitecturePayload.from_mapping(
        {"apiEndpoints": [{"method": "post", "path": "/users"}, {"path": "/health"}, {"method": "GET"}]}
    )

    assert [(e.method, e.path) for e in payload.api_endpoints] == [("POST", "/users"), ("GET", "/health")]


def test_auth_toggles_require_literal_true():
    payload = AuthPayload.from_mapping(
        {
            "authMethods": [{"name": "Email", "enabled": True}, {"name": "SSO", "enabled": "yes"}],
            "userRoles": [{"description": "can read"}],
        }
    )

    assert [t.enabled for t in payload.auth_methods] == [True, False]
    assert payload.user_roles[0].name == "Unnamed Role"


def test_fingerprint_ignores_key_order():
    assert fingerprint({"a": 1, "b": [1, 2]}) == fingerprint({"b": [1, 2], "a": 1})
    assert fingerprint({"a": 1}) != fingerprint({"a": 2})


def test_canonical_json_handles_dataclasses():
    payload = IdeationPayload(app_name="Foo")

    assert '"app_name":"Foo"' in canonical_json(payload)
    assert fingerprint(payload) == fingerprint(IdeationPayload(app_name="Foo"))
