"""Content fingerprints for stage payloads."""

from __future__ import annotations

import dataclasses
import hashlib
import json
from typing import Any

from .model import Fingerprint


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)


def canonical_json(data: Any) -> str:
    """Serialise ``data`` with sorted keys so equal content gives equal text."""

    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        data = dataclasses.asdict(data)
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_default)


def fingerprint(data: Any) -> Fingerprint:
    digest = hashlib.sha256(canonical_json(data).encode("utf-8"))
    return digest.hexdigest()


__all__ = ["canonical_json", "fingerprint"]
