"""Plain-text report rendering for the CLI (deterministic)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from podmon.core.models import ErrorRecord, NamespaceStats, ScoringWeights


def _table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: Sequence[str]) -> str:
        return "  ".join(c.ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    lines = [fmt(headers), fmt(["-" * len(h) for h in headers])]
    lines.extend(fmt(r) for r in rows)
    return lines


def _fmt_weight(v: float) -> str:
    return f"{v:g}"


def render_scoring_legend(weights: ScoringWeights) -> List[str]:
    return [
        "Scoring formula:",
        f"- CrashLoopBackOff: {_fmt_weight(weights.crash_loop)} points",
        f"- ImagePull issues: {_fmt_weight(weights.image_pull)} points",
        f"- High restart count: {_fmt_weight(weights.high_restarts)} points",
        f"- Other errors: {_fmt_weight(weights.other_errors)} points",
        f"- Each restart: {_fmt_weight(weights.restart_multiplier)} points",
    ]


def render_namespace_table(stats: Sequence[NamespaceStats]) -> List[str]:
    rows = [
        [
            s.name,
            f"{s.score:.1f}",
            str(s.total_errors),
            str(s.unique_instances),
            str(s.crash_loop_count),
            str(s.image_pull_count),
            str(s.high_restart_count),
            str(s.total_restarts),
        ]
        for s in stats
    ]
    return _table(
        ["NAMESPACE", "SCORE", "TOTAL ERRORS", "UNIQUE PODS", "CRASHLOOP", "IMAGE PULL", "HIGH RESTARTS", "TOTAL RESTARTS"],
        rows,
    )


def _display_type(rec: ErrorRecord) -> str:
    return rec.reason or rec.kind.value


def render_report(
    stats: Sequence[NamespaceStats],
    errors: Sequence[ErrorRecord],
    *,
    weights: ScoringWeights,
    context_name: Optional[str] = None,
    namespace: Optional[str] = None,
    verbose: bool = False,
) -> str:
    """
    Render the namespace ranking followed by per-namespace error tables.

    Error tables follow ranking order; the MESSAGE column is only shown with `verbose`.
    """
    lines: List[str] = []
    if context_name:
        lines.append(f"Context: {context_name}")
    if namespace:
        lines.append(f"Namespace: {namespace}")
    if lines:
        lines.append("")

    if not stats:
        lines.append("No pod errors found.")
        return "\n".join(lines) + "\n"

    lines.append("Namespace Statistics (sorted by severity):")
    lines.append("----------------------------------------")
    lines.extend(render_namespace_table(stats))
    lines.append("")
    lines.extend(render_scoring_legend(weights))
    lines.append("")
    lines.append("Detailed Errors by Namespace:")
    lines.append("----------------------------")

    by_ns: Dict[str, List[ErrorRecord]] = OrderedDict()
    for rec in errors:
        by_ns.setdefault(rec.namespace, []).append(rec)

    headers = ["POD", "CONTAINER", "TYPE", "RESTARTS"] + (["MESSAGE"] if verbose else [])
    for s in stats:
        recs = by_ns.get(s.name) or []
        if not recs:
            continue
        lines.append("")
        lines.append(f"Namespace: {s.name} (Score: {s.score:.1f}, {len(recs)} errors)")
        rows = []
        for r in recs:
            row = [r.instance_name, r.container_name or "", _display_type(r), str(r.restart_count)]
            if verbose:
                row.append(r.message)
            rows.append(row)
        lines.extend(_table(headers, rows))

    return "\n".join(lines) + "\n"
