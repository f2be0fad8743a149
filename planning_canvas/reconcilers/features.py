"""Feature planning: feature packs, custom features and the architecture blueprint."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .. import stages
from ..payloads import ArchitecturePrep, CustomFeature, FeaturePayload
from .base import CollectionField, SingletonField, StageReconciler

PACK_NAMES: Dict[str, str] = {
    "auth": "Authentication & Users",
    "crud": "Data Management",
    "social": "Social Features",
    "communication": "Communication",
    "commerce": "E-commerce",
    "analytics": "Analytics & Reporting",
    "media": "Media & Files",
    "ai": "AI & Automation",
}

DEFAULT_SUB_FEATURES: Dict[str, tuple] = {
    "auth": (
        "User registration with email/password",
        "Login/logout functionality",
        "Password reset flow",
        "User profile management",
        "Role-based access control",
    ),
    "social": (
        "User profiles and connections",
        "Content sharing capabilities",
        "Like/reaction system",
        "Comment functionality",
        "Activity feed",
    ),
    "commerce": (
        "Product catalog and browsing",
        "Shopping cart functionality",
        "Checkout process",
        "Payment processing",
        "Order management",
    ),
    "analytics": (
        "User activity tracking",
        "Performance metrics dashboard",
        "Custom report generation",
        "Data visualization",
        "Export capabilities",
    ),
    "media": (
        "File upload and storage",
        "Media playback controls",
        "Gallery/library management",
        "Media organization (folders/tags)",
        "Sharing capabilities",
    ),
    "communication": (
        "Direct messaging",
        "Group chat functionality",
        "Notification system",
        "Message status tracking",
        "Media sharing in messages",
    ),
}


def pack_title(pack: str) -> str:
    return PACK_NAMES.get(pack, pack[:1].upper() + pack[1:])


def _render_pack(pack: str) -> Dict[str, Any]:
    return {
        "title": pack_title(pack),
        "content": f"Feature pack selected\nIncludes core {pack} functionality",
        "pack": pack,
        "sub_features": list(DEFAULT_SUB_FEATURES.get(pack, ())),
    }


def _render_custom(feature: CustomFeature) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "title": feature.name,
        "content": (
            f"{feature.description or 'Custom feature'}\n\n"
            f"Priority: {feature.priority}\nComplexity: {feature.complexity}"
        ),
        "priority": feature.priority,
        "complexity": feature.complexity,
        "category": feature.category,
        "is_custom": True,
    }
    if feature.sub_features is not None:
        data["sub_features"] = list(feature.sub_features)
    return data


def _blueprint(payload: FeaturePayload) -> Optional[ArchitecturePrep]:
    prep = payload.architecture_prep
    if prep is None or prep.is_empty:
        return None
    return prep


def _render_blueprint(prep: ArchitecturePrep) -> Dict[str, Any]:
    return {
        "title": "Architecture Blueprint",
        "content": (
            f"Architecture blueprint with {prep.screen_count} screens, "
            f"{prep.api_route_count} API routes, and {prep.component_count} components."
        ),
        "screens": list(prep.screens),
        "api_routes": list(prep.api_routes),
        "components": list(prep.components),
    }


RECONCILER = StageReconciler(
    stage_id=stages.FEATURES,
    payload_type=FeaturePayload,
    singletons=(
        SingletonField(
            "featureDescription",
            lambda p: p.natural_language_features,
            lambda text: {"title": "Feature Description", "content": text},
        ),
        SingletonField("architectureBlueprint", _blueprint, _render_blueprint),
    ),
    collections=(
        CollectionField(
            "feature",
            lambda p: p.selected_feature_packs,
            lambda pack: f"pack:{pack}",
            _render_pack,
            key_prefix="pack:",
        ),
        CollectionField(
            "feature",
            lambda p: p.custom_features,
            lambda feature: feature.natural_key,
            _render_custom,
            refresh=True,
            key_prefix="custom:",
        ),
    ),
)
