"""Ideation & discovery: app concept singletons, personas and competitors."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .. import stages
from ..model import Node
from ..payloads import Competitor, IdeationPayload, Persona
from .base import CollectionField, SingletonField, StageReconciler


def _value(text: str) -> Dict[str, Any]:
    return {"value": text}


def _mission(payload: IdeationPayload) -> Optional[Tuple[str, str]]:
    if payload.mission_statement is None and payload.app_idea is None:
        return None
    return (payload.app_idea or "", payload.mission_statement or "")


def _render_mission(value: Tuple[str, str]) -> Dict[str, Any]:
    idea, statement = value
    return {"value": statement or idea, "app_idea": idea, "mission_statement": statement}


def _tech_stack(payload: IdeationPayload) -> Optional[Tuple[str, ...]]:
    return payload.tech_stack or None


def _personas(payload: IdeationPayload) -> Optional[Tuple[Persona, ...]]:
    if payload.user_personas is not None:
        return payload.user_personas
    if payload.target_users is None:
        return None
    # Older projects only carried a free-text audience description.
    text = payload.target_users
    return (
        Persona(
            name="Target User",
            role="Primary User",
            pain_point=text,
            emoji="👤",
            key_override="legacy:" + " ".join(text.split()).casefold(),
        ),
    )


def _render_persona(persona: Persona) -> Dict[str, Any]:
    return {
        "name": persona.name,
        "role": persona.role,
        "pain_point": persona.pain_point,
        "emoji": persona.emoji or "👤",
    }


def _persona_key(node: Node) -> Optional[str]:
    name = node.data.get("name")
    role = node.data.get("role")
    if not isinstance(name, str) or not isinstance(role, str):
        return None
    return Persona(name=name, role=role).natural_key


def _render_competitor(competitor: Competitor) -> Dict[str, Any]:
    return {
        "name": competitor.name,
        "notes": competitor.notes,
        "link": competitor.link,
        "domain": competitor.domain,
        "tagline": competitor.tagline,
        "market_positioning": competitor.market_positioning,
        "features": list(competitor.features),
        "strengths": list(competitor.strengths),
        "weaknesses": list(competitor.weaknesses),
    }


def _competitor_key(node: Node) -> Optional[str]:
    name = node.data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return Competitor(name=name).natural_key


RECONCILER = StageReconciler(
    stage_id=stages.IDEATION,
    payload_type=IdeationPayload,
    singletons=(
        SingletonField("appName", lambda p: p.app_name, _value, history_key="name_history"),
        SingletonField("tagline", lambda p: p.tagline, _value),
        SingletonField("coreProblem", lambda p: p.problem_statement, _value),
        SingletonField("mission", _mission, _render_mission),
        SingletonField("valueProp", lambda p: p.value_proposition, _value),
        SingletonField("platform", lambda p: p.platform, _value),
        SingletonField("techStack", _tech_stack, lambda stack: {"items": list(stack)}),
        SingletonField("uiStyle", lambda p: p.ui_style, _value),
    ),
    collections=(
        CollectionField(
            "userPersona",
            _personas,
            lambda persona: persona.natural_key,
            _render_persona,
            node_key=_persona_key,
        ),
        CollectionField(
            "competitor",
            lambda p: p.competitors,
            lambda competitor: competitor.natural_key,
            _render_competitor,
            node_key=_competitor_key,
        ),
    ),
)
