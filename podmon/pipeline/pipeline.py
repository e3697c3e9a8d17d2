"""Pipeline orchestration: classify -> aggregate -> score.

Pure functions only; fetching snapshots is the caller's job (see `podmon.service`).
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from podmon.core.models import ErrorRecord, NamespaceStats, ScoringWeights, WorkloadSnapshot
from podmon.pipeline.aggregate import aggregate_by_namespace
from podmon.pipeline.classify import classify_snapshots
from podmon.pipeline.scoring import rank_namespaces


def run_pipeline(
    snapshots: Iterable[WorkloadSnapshot], *, restart_threshold: int, weights: ScoringWeights
) -> Tuple[List[NamespaceStats], List[ErrorRecord]]:
    """Return (ranked namespace stats, flat error records) for one snapshot set."""
    records = classify_snapshots(snapshots, restart_threshold=restart_threshold)
    ranked = rank_namespaces(aggregate_by_namespace(records).values(), weights)
    return ranked, records


def compute_namespace_stats(
    snapshots: Sequence[WorkloadSnapshot], *, restart_threshold: int, weights: ScoringWeights
) -> List[NamespaceStats]:
    ranked, _ = run_pipeline(snapshots, restart_threshold=restart_threshold, weights=weights)
    return ranked
