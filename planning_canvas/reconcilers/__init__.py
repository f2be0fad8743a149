"""Stage reconcilers keyed by stage identifier."""

from __future__ import annotations

from typing import Dict, Optional

from .architecture import RECONCILER as ARCHITECTURE
from .auth import RECONCILER as AUTH
from .base import CollectionField, SingletonField, StageReconciler
from .features import RECONCILER as FEATURES
from .ideation import RECONCILER as IDEATION
from .interface import RECONCILER as INTERFACE
from .structure import RECONCILER as STRUCTURE

REGISTRY: Dict[str, StageReconciler] = {
    reconciler.stage_id: reconciler
    for reconciler in (IDEATION, FEATURES, STRUCTURE, INTERFACE, ARCHITECTURE, AUTH)
}


def get_reconciler(stage_id: str) -> Optional[StageReconciler]:
    return REGISTRY.get(stage_id)


__all__ = [
    "CollectionField",
    "REGISTRY",
    "SingletonField",
    "StageReconciler",
    "get_reconciler",
]
