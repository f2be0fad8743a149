"""Overlap removal for laid-out node boxes.

Node centres are refined with a soft-constraint least-squares problem: every
pair of boxes that is close enough to collide contributes a softplus
penetration residual and every node an anchor residual that keeps it close to
where the layout algorithm put it. The problem is solved in a few short rounds;
the candidate pairs are recomputed between rounds and the pass stops early
once ``deadline`` (a :func:`time.monotonic` value) has gone by.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.optimize import least_squares
from scipy.sparse import coo_matrix


@dataclass
class OverlapOptions:
    """Configuration knobs for the separation optimizer."""

    enable: bool = True
    padding: float = 20.0
    softplus_k: float = 0.2
    anchor_weight: float = 0.05
    max_nfev: int = 200
    min_nfev: int = 20
    # groups above this size get a proportionally smaller evaluation budget
    large_group: int = 40
    candidate_margin: float = 40.0
    max_rounds: int = 4


@dataclass
class OverlapResult:
    centers: np.ndarray
    success: bool
    iterations: int
    remaining_overlap: float = 0.0
    timed_out: bool = False
    notes: List[str] = field(default_factory=list)


def _softplus(x: np.ndarray, k: float) -> np.ndarray:
    scaled = np.clip(k * x, None, 50.0)
    return np.where(k * x > 50.0, x, np.log1p(np.exp(scaled)) / k)


def _pair_indices(count: int) -> Tuple[np.ndarray, np.ndarray]:
    return np.triu_indices(count, k=1)


def _penetration(centers: np.ndarray, sizes: np.ndarray, padding: float) -> np.ndarray:
    """Per-pair overlap depth along the cheaper axis; negative when the pair is clear."""

    i, j = _pair_indices(len(centers))
    delta = np.abs(centers[i] - centers[j])
    required = (sizes[i] + sizes[j]) / 2.0 + padding
    return np.min(required - delta, axis=1)


def total_overlap(centers: np.ndarray, sizes: np.ndarray, padding: float = 0.0) -> float:
    if len(centers) < 2:
        return 0.0
    depth = _penetration(np.asarray(centers, dtype=float), np.asarray(sizes, dtype=float), padding)
    return float(np.sum(np.clip(depth, 0.0, None)))


def candidate_pairs(
    centers: np.ndarray, sizes: np.ndarray, padding: float, margin: float
) -> Tuple[np.ndarray, np.ndarray]:
    """Index arrays of the pairs whose padded boxes come within ``margin`` of touching."""

    i, j = _pair_indices(len(centers))
    depth = _penetration(centers, sizes, padding)
    close = depth > -margin
    return i[close], j[close]


def _nfev_budget(count: int, options: OverlapOptions) -> int:
    if count <= options.large_group:
        return options.max_nfev
    return max(options.min_nfev, options.max_nfev * options.large_group // count)


def _jac_sparsity(i: np.ndarray, j: np.ndarray, count: int) -> coo_matrix:
    """Pair rows touch the four coordinates of their two boxes; anchor rows touch one."""

    pairs = len(i)
    pair_rows = np.repeat(np.arange(pairs), 4)
    pair_cols = np.column_stack([2 * i, 2 * i + 1, 2 * j, 2 * j + 1]).ravel()
    anchor_rows = pairs + np.arange(2 * count)
    anchor_cols = np.arange(2 * count)
    rows = np.concatenate([pair_rows, anchor_rows])
    cols = np.concatenate([pair_cols, anchor_cols])
    return coo_matrix((np.ones(len(rows), dtype=int), (rows, cols)), shape=(pairs + 2 * count, 2 * count))


def _expired(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() >= deadline


def remove_overlaps(
    centers: np.ndarray,
    sizes: np.ndarray,
    options: OverlapOptions,
    deadline: Optional[float] = None,
) -> OverlapResult:
    """Push overlapping boxes apart while staying near ``centers``.

    ``centers`` and ``sizes`` are ``(n, 2)`` arrays of box centres and
    width/height pairs. When ``deadline`` passes between rounds the best
    centres so far are returned with ``timed_out`` set.
    """

    centers = np.asarray(centers, dtype=float).reshape(-1, 2)
    sizes = np.asarray(sizes, dtype=float).reshape(-1, 2)
    count = len(centers)
    if not options.enable or count < 2:
        return OverlapResult(centers=centers.copy(), success=True, iterations=0)

    if total_overlap(centers, sizes, options.padding) == 0.0:
        return OverlapResult(centers=centers.copy(), success=True, iterations=0)

    k = options.softplus_k
    anchors = centers.ravel()
    budget = _nfev_budget(count, options)
    # nudge coincident centres so the optimizer has a direction to move in
    current = anchors + np.linspace(0.0, 1.0, anchors.size)
    iterations = 0
    success = True
    timed_out = False

    for _ in range(options.max_rounds):
        if _expired(deadline):
            timed_out = True
            break
        i, j = candidate_pairs(current.reshape(-1, 2), sizes, options.padding, options.candidate_margin)
        if len(i) == 0:
            break
        required = (sizes[i] + sizes[j]) / 2.0 + options.padding

        def residuals(params: np.ndarray) -> np.ndarray:
            placed = params.reshape(-1, 2)
            diff = placed[i] - placed[j]
            # smooth |d| keeps the Jacobian finite for coincident centres
            delta = np.sqrt(diff * diff + 1.0)
            depth = np.min(required - delta, axis=1)
            separation = _softplus(depth, k)
            anchor = options.anchor_weight * (params - anchors)
            return np.concatenate([separation, anchor])

        result = least_squares(
            residuals,
            current,
            method="trf",
            jac_sparsity=_jac_sparsity(i, j, count),
            max_nfev=budget,
        )
        current = result.x
        iterations += int(result.nfev)
        success = bool(result.success)
        if total_overlap(current.reshape(-1, 2), sizes) == 0.0:
            break

    refined = current.reshape(-1, 2)
    remaining = total_overlap(refined, sizes)
    notes = [] if success else ["least_squares did not converge"]
    if timed_out:
        notes.append("deadline reached")
    if remaining > 0.0:
        notes.append(f"residual overlap {remaining:.1f}px")
    return OverlapResult(
        centers=refined,
        success=success and not timed_out,
        iterations=iterations,
        remaining_overlap=remaining,
        timed_out=timed_out,
        notes=notes,
    )


__all__ = ["OverlapOptions", "OverlapResult", "candidate_pairs", "remove_overlaps", "total_overlap"]
