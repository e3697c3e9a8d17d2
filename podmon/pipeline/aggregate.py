"""Fold error records into per-namespace counters."""

from __future__ import annotations

from typing import Dict, Iterable, Set

from podmon.core.models import ErrorKind, ErrorRecord, NamespaceStats

_KIND_COUNTERS = {
    ErrorKind.CRASH_LOOP: "crash_loop_count",
    ErrorKind.IMAGE_PULL_FAILURE: "image_pull_count",
    ErrorKind.HIGH_RESTART_COUNT: "high_restart_count",
}


def aggregate_by_namespace(records: Iterable[ErrorRecord]) -> Dict[str, NamespaceStats]:
    """
    Group records by namespace. Scores are left at 0.0 (see `scoring.rank_namespaces`).

    `total_restarts` sums the restart count of every record in the group, not only the
    HighRestartCount ones. A namespace with no records never appears in the result.
    """
    stats: Dict[str, NamespaceStats] = {}
    instances: Dict[str, Set[str]] = {}

    for rec in records:
        ns = stats.get(rec.namespace)
        if ns is None:
            ns = NamespaceStats(name=rec.namespace)
            stats[rec.namespace] = ns
            instances[rec.namespace] = set()

        ns.total_errors += 1
        ns.total_restarts += rec.restart_count
        instances[rec.namespace].add(rec.instance_name)

        counter = _KIND_COUNTERS.get(rec.kind)
        if counter:
            setattr(ns, counter, getattr(ns, counter) + 1)

    for name, ns in stats.items():
        ns.unique_instances = len(instances[name])
    return stats
