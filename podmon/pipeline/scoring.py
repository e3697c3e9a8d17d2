"""Deterministic namespace scoring (counters -> weighted score -> ranking).

This module is intentionally explainable:
- every counter contributes `count * weight`
- restarts contribute `total_restarts * restart_multiplier`
- ordering is score descending, then namespace name ascending
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from podmon.core.models import NamespaceStats, ScoringWeights

# Sums of decimal weights pick up binary rounding noise (1 + 14 * 0.1 != 2 + 4 * 0.1);
# scores are rounded so equal sums compare equal and fall through to the name tie-break.
SCORE_DECIMALS = 9


def score_namespace(stats: NamespaceStats, weights: ScoringWeights) -> float:
    raw = (
        stats.crash_loop_count * weights.crash_loop
        + stats.image_pull_count * weights.image_pull
        + stats.high_restart_count * weights.high_restarts
        + stats.other_error_count * weights.other_errors
        + stats.total_restarts * weights.restart_multiplier
    )
    return round(raw, SCORE_DECIMALS)


def _rank_key(stats: NamespaceStats) -> Tuple[float, str]:
    return (-stats.score, stats.name)


def rank_namespaces(stats: Iterable[NamespaceStats], weights: ScoringWeights) -> List[NamespaceStats]:
    """
    Return scored copies sorted by score (desc), ties broken by name (asc).

    Inputs are not mutated. Entries with zero errors are dropped.
    """
    scored = [
        s.model_copy(update={"score": score_namespace(s, weights)}) for s in stats if s.total_errors > 0
    ]
    scored.sort(key=_rank_key)
    return scored
