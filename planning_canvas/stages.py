"""Planning stage identifiers in workflow order."""

from __future__ import annotations

from typing import Tuple

IDEATION = "ideation-discovery"
FEATURES = "feature-planning"
STRUCTURE = "structure-flow"
INTERFACE = "interface-interaction"
ARCHITECTURE = "architecture-design"
AUTH = "user-auth-flow"
UX_REVIEW = "ux-review-check"
AUTO_PROMPT = "auto-prompt-engine"
EXPORT = "export-handoff"

# Owner stage for nodes the engine derives from several stages at once.
ANALYSIS = "project-analysis"

STAGE_ORDER: Tuple[str, ...] = (
    IDEATION,
    FEATURES,
    STRUCTURE,
    INTERFACE,
    ARCHITECTURE,
    AUTH,
    UX_REVIEW,
    AUTO_PROMPT,
    EXPORT,
)


def stage_rank(stage_id: str) -> int:
    """Position of ``stage_id`` in the workflow; unknown stages sort last."""

    try:
        return STAGE_ORDER.index(stage_id)
    except ValueError:
        return len(STAGE_ORDER)
