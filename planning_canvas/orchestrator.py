"""Entry point that turns a stage-data change into an updated node list."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import numpy as np

from .config import PlacementConfig
from .fingerprint import fingerprint
from .logging_utils import apply_debug_logging
from .model import Connection, Fingerprint, Node, ReconcileResult, StageId
from .payloads import parse_stage_payload
from .reconcilers import get_reconciler

logger = logging.getLogger(__name__)


def reconcile(
    nodes: List[Node],
    connections: List[Connection],
    stage_id: StageId,
    stage_data: Any,
    last_processed: Dict[StageId, Fingerprint],
    *,
    rng: Optional[np.random.Generator] = None,
    config: Optional[PlacementConfig] = None,
) -> ReconcileResult:
    """Project ``stage_data`` onto ``nodes``.

    Unchanged data (by fingerprint) and unknown stages hand back the very same
    ``nodes`` list. Any failure is logged and reported on the result while the
    inputs are returned untouched.
    """

    reconciler = get_reconciler(stage_id)
    if reconciler is None:
        logger.debug("No reconciler registered for stage %s", stage_id)
        return ReconcileResult(nodes, connections, last_processed)

    try:
        digest = fingerprint(stage_data)
        if last_processed.get(stage_id) == digest:
            logger.debug("Stage %s unchanged (%s)", stage_id, digest[:12])
            return ReconcileResult(nodes, connections, last_processed, skipped=True)
        payload = parse_stage_payload(stage_id, stage_data)
        updated = reconciler.reconcile(nodes, payload, rng=rng, config=config)
    except Exception as exc:
        logger.exception("Reconciliation of stage %s failed; keeping current canvas", stage_id)
        return ReconcileResult(nodes, connections, last_processed, error=exc)

    recorded = dict(last_processed)
    recorded[stage_id] = digest
    changed = updated is not nodes
    logger.info("Stage %s reconciled (%s)", stage_id, "changed" if changed else "no changes")
    return ReconcileResult(updated, connections, recorded, changed=changed)


def prune(nodes: List[Node], stage_id: StageId, stage_data: Any) -> List[Node]:
    """Remove the stage's generated collection nodes that the payload no longer lists."""

    reconciler = get_reconciler(stage_id)
    if reconciler is None:
        return nodes
    payload = parse_stage_payload(stage_id, stage_data)
    return reconciler.prune(nodes, payload)


apply_debug_logging(globals(), logger=logger)


__all__ = ["prune", "reconcile"]
