"""Architecture design: database tables, API surface and sitemap routes."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .. import stages
from ..payloads import ApiEndpoint, ArchitecturePayload, DatabaseTable, Route
from .base import CollectionField, SingletonField, StageReconciler


def _endpoints(payload: ArchitecturePayload) -> Optional[Tuple[ApiEndpoint, ...]]:
    return payload.api_endpoints or None


def _render_endpoints(endpoints: Tuple[ApiEndpoint, ...]) -> Dict[str, Any]:
    return {
        "endpoints": [f"{endpoint.method} {endpoint.path}" for endpoint in endpoints],
        "content": f"{len(endpoints)} API endpoints",
    }


def _render_table(table: DatabaseTable) -> Dict[str, Any]:
    return {"name": table.name, "fields": list(table.fields)}


def _render_route(route: Route) -> Dict[str, Any]:
    return {
        "path": route.path,
        "component": route.component,
        "protected": route.protected,
        "description": route.description,
    }


RECONCILER = StageReconciler(
    stage_id=stages.ARCHITECTURE,
    payload_type=ArchitecturePayload,
    singletons=(SingletonField("apiEndpoints", _endpoints, _render_endpoints),),
    collections=(
        CollectionField("databaseTable", lambda p: p.database_schema, lambda table: table.natural_key, _render_table),
        CollectionField("route", lambda p: p.sitemap, lambda route: route.natural_key, _render_route),
    ),
)
