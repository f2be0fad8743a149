"""Project summary node derived from every stage's data."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from . import stages
from .config import PlacementConfig
from .factory import create_node
from .model import Node
from .payloads import ArchitecturePayload, FeaturePayload, IdeationPayload, StructurePayload

logger = logging.getLogger(__name__)

SUMMARY_TYPE = "projectSummary"


def _count(items: Optional[tuple]) -> int:
    return len(items) if items else 0


def _payload(payload_type: Any, raw: Any) -> Any:
    return payload_type.from_mapping(raw if isinstance(raw, Mapping) else {})


def summarize_project(stage_data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Build the summary node's data, or ``None`` when no stage has data yet."""

    present = {stage: data for stage, data in stage_data.items() if data}
    if not present:
        return None

    total_items = sum(len(data) for data in present.values() if isinstance(data, Mapping))

    ideation = _payload(IdeationPayload, present.get(stages.IDEATION))
    features = _payload(FeaturePayload, present.get(stages.FEATURES))
    structure = _payload(StructurePayload, present.get(stages.STRUCTURE))
    architecture = _payload(ArchitecturePayload, present.get(stages.ARCHITECTURE))

    app_name = ideation.app_name or "Your app"
    feature_count = _count(features.selected_feature_packs) + _count(features.custom_features)
    screen_count = _count(structure.screens)
    table_count = _count(architecture.database_schema)

    lines = [
        f"Project Analysis for {app_name}",
        "",
        f"• {len(present)} stages with data",
        f"• {total_items} total items defined",
    ]
    if feature_count:
        lines.append(f"• {feature_count} features planned")
    if screen_count:
        lines.append(f"• {screen_count} screens designed")
    if table_count:
        lines.append(f"• {table_count} database tables")

    recommendations = []
    if ideation.value_proposition is None:
        recommendations.append("Define your value proposition")
    if feature_count == 0:
        recommendations.append("Plan your core features")
    if screen_count == 0:
        recommendations.append("Design your app screens")
    if table_count == 0:
        recommendations.append("Define your data models")
    if recommendations:
        lines.append("")
        lines.append("Recommendations:")
        lines.extend(f"• {item}" for item in recommendations)

    return {
        "title": "Project Analysis",
        "content": "\n".join(lines),
        "stages_completed": sorted(present, key=stages.stage_rank),
        "total_items": total_items,
        "feature_count": feature_count,
        "screen_count": screen_count,
        "table_count": table_count,
        "recommendations": recommendations,
    }


def refresh_summary_node(
    nodes: List[Node],
    stage_data: Mapping[str, Any],
    *,
    rng: Optional[np.random.Generator] = None,
    config: Optional[PlacementConfig] = None,
) -> List[Node]:
    """Create or update the single generated summary node; same list when it is current."""

    if not nodes:
        return nodes
    summary = summarize_project(stage_data)
    if summary is None:
        return nodes

    for idx, node in enumerate(nodes):
        if node.stage == stages.ANALYSIS and node.metadata.generated:
            if node.data == summary:
                return nodes
            updated = list(nodes)
            updated[idx] = node.evolve(data=summary)
            logger.debug("Refreshed project summary %s", node.id)
            return updated

    node = create_node(SUMMARY_TYPE, stages.ANALYSIS, summary, nodes, generated=True, rng=rng, config=config)
    logger.info("Added project summary node %s", node.id)
    return nodes + [node]


__all__ = ["SUMMARY_TYPE", "refresh_summary_node", "summarize_project"]
