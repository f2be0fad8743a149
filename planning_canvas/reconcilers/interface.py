"""Interface & interaction: design system, branding, layout and lo-fi wireframes."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .. import stages
from ..payloads import Branding, InterfacePayload, LofiLayout
from .base import CollectionField, SingletonField, StageReconciler


def _render_branding(branding: Branding) -> Dict[str, Any]:
    return {
        "primary_color": branding.primary_color,
        "secondary_color": branding.secondary_color,
        "accent_color": branding.accent_color,
        "font_family": branding.font_family,
        "body_font": branding.body_font,
        "border_radius": branding.border_radius,
    }


def _layout_blocks(payload: InterfacePayload) -> Optional[Tuple[str, ...]]:
    return payload.layout_blocks or None


def _render_blocks(blocks: Tuple[str, ...]) -> Dict[str, Any]:
    return {"blocks": list(blocks), "content": f"{len(blocks)} layout blocks"}


def _render_lofi(layout: LofiLayout) -> Dict[str, Any]:
    return {
        "layout_id": layout.layout_id,
        "template_name": layout.template_name,
        "blocks": list(layout.block_types),
        "description": layout.description,
        "view_mode": layout.view_mode,
    }


RECONCILER = StageReconciler(
    stage_id=stages.INTERFACE,
    payload_type=InterfacePayload,
    singletons=(
        SingletonField("designSystem", lambda p: p.selected_design_system, lambda name: {"value": name}),
        SingletonField("branding", lambda p: p.custom_branding, _render_branding),
        SingletonField("layoutStructure", _layout_blocks, _render_blocks),
    ),
    collections=(
        CollectionField(
            "lofiLayout",
            lambda p: p.lofi_layouts,
            lambda layout: layout.natural_key,
            _render_lofi,
        ),
    ),
)
