"""User auth flow: enabled methods, roles and security features."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .. import stages
from ..payloads import AuthPayload, Toggle, UserRole
from .base import SingletonField, StageReconciler


def _enabled(toggles: Optional[Tuple[Toggle, ...]]) -> Optional[Tuple[str, ...]]:
    if toggles is None:
        return None
    names = tuple(toggle.name for toggle in toggles if toggle.enabled)
    return names or None


def _roles(payload: AuthPayload) -> Optional[Tuple[UserRole, ...]]:
    return payload.user_roles or None


def _render_names(names: Tuple[str, ...]) -> Dict[str, Any]:
    return {"items": list(names)}


def _render_roles(roles: Tuple[UserRole, ...]) -> Dict[str, Any]:
    return {"items": [{"name": role.name, "description": role.description} for role in roles]}


RECONCILER = StageReconciler(
    stage_id=stages.AUTH,
    payload_type=AuthPayload,
    singletons=(
        SingletonField("authMethods", lambda p: _enabled(p.auth_methods), _render_names),
        SingletonField("userRoles", _roles, _render_roles),
        SingletonField("securityFeatures", lambda p: _enabled(p.security_features), _render_names),
    ),
)
