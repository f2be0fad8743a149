"""Typed stage payloads.

Every stage form hands the engine a loosely-typed mapping (camelCase keys as the
forms produce them). Each stage gets a frozen dataclass tagged with its
``stage_id``; ``from_mapping`` coerces the raw mapping and turns anything
malformed into ``None`` so reconcilers only ever see "present" or "absent".
Malformed entries inside collections are dropped individually.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from . import stages

T = TypeVar("T")


class PayloadError(ValueError):
    """Raised when a stage identifier has no payload schema."""


def _text(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _plain(raw: Mapping[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else default


def _strings(raw: Mapping[str, Any], key: str) -> Optional[Tuple[str, ...]]:
    value = raw.get(key)
    if not isinstance(value, list):
        return None
    return tuple(item for item in value if isinstance(item, str) and item.strip())


def _records(
    raw: Mapping[str, Any], key: str, factory: Callable[[Mapping[str, Any]], Optional[T]]
) -> Optional[Tuple[T, ...]]:
    value = raw.get(key)
    if not isinstance(value, list):
        return None
    out = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        record = factory(item)
        if record is not None:
            out.append(record)
    return tuple(out)


def _names(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    names = []
    for item in value:
        if isinstance(item, str) and item.strip():
            names.append(item)
        elif isinstance(item, Mapping) and isinstance(item.get("name"), str):
            names.append(item["name"])
    return tuple(names)


def _norm(value: str) -> str:
    return " ".join(value.split()).casefold()


# ---------------------------------------------------------------------------
# Ideation & discovery


@dataclass(frozen=True)
class Persona:
    name: str
    role: str
    pain_point: str = ""
    emoji: str = ""
    key_override: Optional[str] = None

    @property
    def natural_key(self) -> str:
        if self.key_override:
            return self.key_override
        return f"{_norm(self.name)}|{_norm(self.role)}"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["Persona"]:
        name = _text(raw, "name")
        role = _text(raw, "role")
        if name is None and role is None:
            return None
        return cls(
            name=name or "",
            role=role or "",
            pain_point=_plain(raw, "painPoint"),
            emoji=_plain(raw, "emoji"),
        )


@dataclass(frozen=True)
class Competitor:
    name: str
    notes: str = ""
    link: str = ""
    domain: str = ""
    tagline: str = ""
    market_positioning: str = ""
    features: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()

    @property
    def natural_key(self) -> str:
        return _norm(self.name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["Competitor"]:
        name = _text(raw, "name")
        if name is None:
            return None
        return cls(
            name=name,
            notes=_plain(raw, "notes"),
            link=_plain(raw, "link"),
            domain=_plain(raw, "domain"),
            tagline=_plain(raw, "tagline"),
            market_positioning=_plain(raw, "marketPositioning"),
            features=_strings(raw, "features") or (),
            strengths=_strings(raw, "strengths") or (),
            weaknesses=_strings(raw, "weaknesses") or (),
        )


@dataclass(frozen=True)
class IdeationPayload:
    stage_id: ClassVar[str] = stages.IDEATION

    app_name: Optional[str] = None
    tagline: Optional[str] = None
    problem_statement: Optional[str] = None
    app_idea: Optional[str] = None
    mission_statement: Optional[str] = None
    value_proposition: Optional[str] = None
    platform: Optional[str] = None
    tech_stack: Optional[Tuple[str, ...]] = None
    ui_style: Optional[str] = None
    user_personas: Optional[Tuple[Persona, ...]] = None
    target_users: Optional[str] = None
    competitors: Optional[Tuple[Competitor, ...]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "IdeationPayload":
        competitors = _records(raw, "competitorData", Competitor.from_mapping)
        if competitors is None:
            competitors = _records(raw, "competitors", Competitor.from_mapping)
        return cls(
            app_name=_text(raw, "appName"),
            tagline=_text(raw, "tagline"),
            problem_statement=_text(raw, "problemStatement"),
            app_idea=_text(raw, "appIdea"),
            mission_statement=_text(raw, "missionStatement"),
            value_proposition=_text(raw, "valueProposition"),
            platform=_text(raw, "platform"),
            tech_stack=_strings(raw, "techStack"),
            ui_style=_text(raw, "uiStyle"),
            user_personas=_records(raw, "userPersonas", Persona.from_mapping),
            target_users=_text(raw, "targetUsers"),
            competitors=competitors,
        )


# ---------------------------------------------------------------------------
# Feature planning


@dataclass(frozen=True)
class CustomFeature:
    id: str
    name: str
    description: str = ""
    priority: str = "should"
    complexity: str = "medium"
    category: str = "both"
    sub_features: Optional[Tuple[str, ...]] = None

    @property
    def natural_key(self) -> str:
        return f"custom:{self.id}"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["CustomFeature"]:
        name = _text(raw, "name")
        ident = raw.get("id")
        if isinstance(ident, (int, float)) and not isinstance(ident, bool):
            ident = str(ident)
        if not isinstance(ident, str) or not ident:
            ident = _norm(name) if name else None
        if ident is None:
            return None
        return cls(
            id=ident,
            name=name or "Custom feature",
            description=_plain(raw, "description"),
            priority=_plain(raw, "priority", "should") or "should",
            complexity=_plain(raw, "complexity", "medium") or "medium",
            category=_plain(raw, "category", "both") or "both",
            sub_features=_strings(raw, "subFeatures"),
        )


@dataclass(frozen=True)
class ArchitecturePrep:
    screens: Tuple[str, ...] = ()
    api_routes: Tuple[str, ...] = ()
    components: Tuple[str, ...] = ()
    screen_count: int = 0
    api_route_count: int = 0
    component_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.screen_count or self.api_route_count or self.component_count)

    @classmethod
    def from_value(cls, value: Any) -> Optional["ArchitecturePrep"]:
        if not isinstance(value, Mapping):
            return None

        def count(key: str) -> int:
            items = value.get(key)
            return len(items) if isinstance(items, list) else 0

        return cls(
            screens=_names(value.get("screens")),
            api_routes=_names(value.get("apiRoutes")),
            components=_names(value.get("components")),
            screen_count=count("screens"),
            api_route_count=count("apiRoutes"),
            component_count=count("components"),
        )


@dataclass(frozen=True)
class FeaturePayload:
    stage_id: ClassVar[str] = stages.FEATURES

    selected_feature_packs: Optional[Tuple[str, ...]] = None
    custom_features: Optional[Tuple[CustomFeature, ...]] = None
    natural_language_features: Optional[str] = None
    architecture_prep: Optional[ArchitecturePrep] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "FeaturePayload":
        return cls(
            selected_feature_packs=_strings(raw, "selectedFeaturePacks"),
            custom_features=_records(raw, "customFeatures", CustomFeature.from_mapping),
            natural_language_features=_text(raw, "naturalLanguageFeatures"),
            architecture_prep=ArchitecturePrep.from_value(raw.get("architecturePrep")),
        )


# ---------------------------------------------------------------------------
# Structure & flow


@dataclass(frozen=True)
class Screen:
    name: str
    id: Optional[str] = None
    type: str = "core"
    description: str = ""

    @property
    def natural_key(self) -> str:
        return self.id or _norm(self.name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["Screen"]:
        name = _text(raw, "name")
        if name is None:
            return None
        return cls(
            name=name,
            id=_text(raw, "id"),
            type=_plain(raw, "type", "core") or "core",
            description=_plain(raw, "description"),
        )


@dataclass(frozen=True)
class UserFlow:
    name: str
    id: Optional[str] = None
    steps: Tuple[str, ...] = ()
    description: str = ""

    @property
    def natural_key(self) -> str:
        return self.id or _norm(self.name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["UserFlow"]:
        name = _text(raw, "name")
        if name is None:
            return None
        return cls(
            name=name,
            id=_text(raw, "id"),
            steps=_strings(raw, "steps") or (),
            description=_plain(raw, "description"),
        )


@dataclass(frozen=True)
class StructurePayload:
    stage_id: ClassVar[str] = stages.STRUCTURE

    screens: Optional[Tuple[Screen, ...]] = None
    user_flows: Optional[Tuple[UserFlow, ...]] = None
    state_management: Optional[str] = None
    data_flow: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "StructurePayload":
        return cls(
            screens=_records(raw, "screens", Screen.from_mapping),
            user_flows=_records(raw, "userFlows", UserFlow.from_mapping),
            state_management=_text(raw, "stateManagement"),
            data_flow=_text(raw, "dataFlow"),
        )


# ---------------------------------------------------------------------------
# Interface & interaction


@dataclass(frozen=True)
class Branding:
    primary_color: str = ""
    secondary_color: str = ""
    accent_color: str = ""
    font_family: str = ""
    body_font: str = ""
    border_radius: str = ""

    @classmethod
    def from_value(cls, value: Any) -> Optional["Branding"]:
        if not isinstance(value, Mapping):
            return None
        branding = cls(
            primary_color=_plain(value, "primaryColor"),
            secondary_color=_plain(value, "secondaryColor"),
            accent_color=_plain(value, "accentColor"),
            font_family=_plain(value, "fontFamily"),
            body_font=_plain(value, "bodyFont"),
            border_radius=_plain(value, "borderRadius"),
        )
        if not (branding.primary_color or branding.secondary_color or branding.font_family):
            return None
        return branding


@dataclass(frozen=True)
class LofiLayout:
    layout_id: str
    template_name: str = ""
    block_types: Tuple[str, ...] = ()
    description: str = ""
    view_mode: str = "desktop"

    @property
    def natural_key(self) -> str:
        return self.layout_id

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["LofiLayout"]:
        template = _text(raw, "templateName")
        layout_id = _text(raw, "layoutId") or (_norm(template) if template else None)
        if layout_id is None:
            return None
        return cls(
            layout_id=layout_id,
            template_name=template or "",
            block_types=_block_types(raw.get("layoutBlocks")) or (),
            description=_plain(raw, "description"),
            view_mode=_plain(raw, "viewMode", "desktop") or "desktop",
        )


def _block_types(value: Any) -> Optional[Tuple[str, ...]]:
    if not isinstance(value, list):
        return None
    out = []
    for block in value:
        if isinstance(block, Mapping):
            kind = block.get("type")
            out.append(kind if isinstance(kind, str) and kind else "block")
    return tuple(out)


@dataclass(frozen=True)
class InterfacePayload:
    stage_id: ClassVar[str] = stages.INTERFACE

    selected_design_system: Optional[str] = None
    custom_branding: Optional[Branding] = None
    layout_blocks: Optional[Tuple[str, ...]] = None
    lofi_layouts: Optional[Tuple[LofiLayout, ...]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "InterfacePayload":
        return cls(
            selected_design_system=_text(raw, "selectedDesignSystem"),
            custom_branding=Branding.from_value(raw.get("customBranding")),
            layout_blocks=_block_types(raw.get("layoutBlocks")),
            lofi_layouts=_records(raw, "lofiLayouts", LofiLayout.from_mapping),
        )


# ---------------------------------------------------------------------------
# Architecture design


@dataclass(frozen=True)
class DatabaseTable:
    name: str
    fields: Tuple[str, ...] = ()

    @property
    def natural_key(self) -> str:
        return _norm(self.name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["DatabaseTable"]:
        name = _text(raw, "name")
        if name is None:
            return None
        return cls(name=name, fields=_names(raw.get("fields")))


@dataclass(frozen=True)
class ApiEndpoint:
    method: str
    path: str
    description: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["ApiEndpoint"]:
        path = _text(raw, "path")
        if path is None:
            return None
        return cls(
            method=(_plain(raw, "method", "GET") or "GET").upper(),
            path=path,
            description=_plain(raw, "description"),
        )


@dataclass(frozen=True)
class Route:
    path: str
    component: str = ""
    protected: bool = False
    description: str = ""

    @property
    def natural_key(self) -> str:
        return self.path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["Route"]:
        path = _text(raw, "path")
        if path is None:
            return None
        return cls(
            path=path,
            component=_plain(raw, "component"),
            protected=bool(raw.get("protected", False)),
            description=_plain(raw, "description"),
        )


@dataclass(frozen=True)
class ArchitecturePayload:
    stage_id: ClassVar[str] = stages.ARCHITECTURE

    database_schema: Optional[Tuple[DatabaseTable, ...]] = None
    api_endpoints: Optional[Tuple[ApiEndpoint, ...]] = None
    sitemap: Optional[Tuple[Route, ...]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ArchitecturePayload":
        return cls(
            database_schema=_records(raw, "databaseSchema", DatabaseTable.from_mapping),
            api_endpoints=_records(raw, "apiEndpoints", ApiEndpoint.from_mapping),
            sitemap=_records(raw, "sitemap", Route.from_mapping),
        )


# ---------------------------------------------------------------------------
# User auth flow


@dataclass(frozen=True)
class Toggle:
    """A named option the user can switch on or off (auth method, security feature)."""

    name: str
    enabled: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["Toggle"]:
        name = _text(raw, "name")
        if name is None:
            return None
        return cls(name=name, enabled=raw.get("enabled") is True)


@dataclass(frozen=True)
class UserRole:
    name: str
    description: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Optional["UserRole"]:
        name = _text(raw, "name")
        description = _plain(raw, "description")
        if name is None and not description:
            return None
        return cls(name=name or "Unnamed Role", description=description)


@dataclass(frozen=True)
class AuthPayload:
    stage_id: ClassVar[str] = stages.AUTH

    auth_methods: Optional[Tuple[Toggle, ...]] = None
    user_roles: Optional[Tuple[UserRole, ...]] = None
    security_features: Optional[Tuple[Toggle, ...]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AuthPayload":
        return cls(
            auth_methods=_records(raw, "authMethods", Toggle.from_mapping),
            user_roles=_records(raw, "userRoles", UserRole.from_mapping),
            security_features=_records(raw, "securityFeatures", Toggle.from_mapping),
        )


StagePayload = Union[
    IdeationPayload,
    FeaturePayload,
    StructurePayload,
    InterfacePayload,
    ArchitecturePayload,
    AuthPayload,
]

PAYLOAD_TYPES: Dict[str, Type[Any]] = {
    cls.stage_id: cls
    for cls in (
        IdeationPayload,
        FeaturePayload,
        StructurePayload,
        InterfacePayload,
        ArchitecturePayload,
        AuthPayload,
    )
}


def parse_stage_payload(stage_id: str, raw: Any) -> Optional[StagePayload]:
    """Return the typed payload for ``stage_id`` or ``None`` for unknown stages.

    A payload that is not a mapping at all is read as "every field absent".
    """

    payload_type = PAYLOAD_TYPES.get(stage_id)
    if payload_type is None:
        return None
    if isinstance(raw, payload_type):
        return raw
    if not isinstance(raw, Mapping):
        raw = {}
    return payload_type.from_mapping(raw)


def require_payload(stage_id: str, raw: Any) -> StagePayload:
    payload = parse_stage_payload(stage_id, raw)
    if payload is None:
        known = ", ".join(sorted(PAYLOAD_TYPES))
        raise PayloadError(f"unknown stage '{stage_id}' (expected one of: {known})")
    return payload


__all__ = [
    "ApiEndpoint",
    "ArchitecturePayload",
    "ArchitecturePrep",
    "AuthPayload",
    "Branding",
    "Competitor",
    "CustomFeature",
    "DatabaseTable",
    "FeaturePayload",
    "IdeationPayload",
    "InterfacePayload",
    "LofiLayout",
    "PAYLOAD_TYPES",
    "PayloadError",
    "Persona",
    "Route",
    "Screen",
    "StagePayload",
    "StructurePayload",
    "Toggle",
    "UserFlow",
    "UserRole",
    "parse_stage_payload",
    "require_payload",
]
