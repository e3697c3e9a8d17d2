from __future__ import annotations

from podmon.core.models import ContainerStatusSnapshot, ContainerWaiting, ScoringWeights, WorkloadSnapshot
from podmon.pipeline.pipeline import run_pipeline
from podmon.report import render_report


def _result(weights: ScoringWeights):  # type: ignore[no-untyped-def]
    snaps = [
        WorkloadSnapshot(namespace="a", name="p1", phase="Failed"),
        WorkloadSnapshot(
            namespace="b",
            name="p2",
            container_statuses=[
                ContainerStatusSnapshot(
                    name="c1", restart_count=10, waiting=ContainerWaiting(reason="ErrImagePull", message="not found")
                )
            ],
        ),
    ]
    return run_pipeline(snaps, restart_threshold=5, weights=weights)


def test_report_lists_namespaces_in_rank_order(weights: ScoringWeights) -> None:
    ranked, errors = _result(weights)
    out = render_report(ranked, errors, weights=weights, context_name="dev")
    assert out.startswith("Context: dev\n")
    assert out.index("Namespace: b (Score: 5.0, 2 errors)") < out.index("Namespace: a (Score: 1.0, 1 errors)")
    assert "- CrashLoopBackOff: 3 points" in out
    assert "- Each restart: 0.1 points" in out
    # Raw waiting reason is shown as the type.
    assert "ErrImagePull" in out
    assert "InstanceFailed" in out
    assert "MESSAGE" not in out


def test_report_verbose_includes_messages(weights: ScoringWeights) -> None:
    ranked, errors = _result(weights)
    out = render_report(ranked, errors, weights=weights, verbose=True)
    assert "MESSAGE" in out
    assert "not found" in out
    assert "Pod is in Failed phase" in out


def test_report_without_errors(weights: ScoringWeights) -> None:
    assert render_report([], [], weights=weights, namespace="quiet") == "Namespace: quiet\n\nNo pod errors found.\n"
