from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from podmon.contexts.handle import ActiveClient
from podmon.core.errors import FetchFailure
from podmon.providers.k8s_provider import KubernetesSnapshotProvider, pod_to_snapshot


def _v1pod(name: str, namespace: str, phase: str, statuses: Optional[List[Any]] = None) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace),
        status=SimpleNamespace(phase=phase, container_statuses=statuses),
    )


def _v1cs(name: str, restarts: int, waiting: Optional[Dict[str, str]] = None) -> SimpleNamespace:
    state = SimpleNamespace(waiting=SimpleNamespace(**waiting) if waiting is not None else None, running=None)
    return SimpleNamespace(name=name, restart_count=restarts, state=state)


class _FakeCoreV1:
    def __init__(self, pods: List[Any], *, fail: Optional[Exception] = None) -> None:
        self._pods = pods
        self._fail = fail
        self.calls: List[Dict[str, Any]] = []

    def list_pod_for_all_namespaces(self, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append({"all": True, **kwargs})
        if self._fail:
            raise self._fail
        return SimpleNamespace(items=self._pods)

    def list_namespaced_pod(self, namespace: str, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append({"namespace": namespace, **kwargs})
        if self._fail:
            raise self._fail
        return SimpleNamespace(items=[p for p in self._pods if p.metadata.namespace == namespace])


def test_pod_to_snapshot_extracts_waiting_state() -> None:
    pod = _v1pod(
        "web-1",
        "shop",
        "Running",
        [_v1cs("app", 7, {"reason": "CrashLoopBackOff", "message": "back-off"}), _v1cs("sidecar", 0)],
    )
    snap = pod_to_snapshot(pod)
    assert (snap.namespace, snap.name, snap.phase) == ("shop", "web-1", "Running")
    app, sidecar = snap.container_statuses
    assert app.restart_count == 7
    assert app.waiting is not None and app.waiting.reason == "CrashLoopBackOff"
    assert sidecar.waiting is None


def test_pod_to_snapshot_tolerates_missing_status() -> None:
    pod = SimpleNamespace(metadata=SimpleNamespace(name="p", namespace="n"), status=None)
    snap = pod_to_snapshot(pod)
    assert snap.phase is None
    assert snap.container_statuses == []


def test_pod_to_snapshot_handles_none_reason() -> None:
    pod = _v1pod("p", "n", "Pending", [_v1cs("c", 0, {"reason": None, "message": None})])  # type: ignore[dict-item]
    (cs,) = pod_to_snapshot(pod).container_statuses
    assert cs.waiting is not None and cs.waiting.reason == ""


def test_list_instances_all_namespaces_passes_timeout() -> None:
    v1 = _FakeCoreV1([_v1pod("a", "x", "Running"), _v1pod("b", "y", "Failed")])
    provider = KubernetesSnapshotProvider(ActiveClient(v1, context_name="dev"))
    snaps = provider.list_instances(timeout=3.0)
    assert [s.name for s in snaps] == ["a", "b"]
    assert v1.calls == [{"all": True, "_request_timeout": 3.0}]


def test_list_instances_namespaced() -> None:
    v1 = _FakeCoreV1([_v1pod("a", "x", "Running"), _v1pod("b", "y", "Failed")])
    provider = KubernetesSnapshotProvider(ActiveClient(v1))
    snaps = provider.list_instances("y")
    assert [s.name for s in snaps] == ["b"]
    assert v1.calls == [{"namespace": "y"}]


def test_list_instances_wraps_api_errors() -> None:
    class _ApiError(Exception):
        reason = "Forbidden"
        body = '{"message":"pods is forbidden"}'

    provider = KubernetesSnapshotProvider(ActiveClient(_FakeCoreV1([], fail=_ApiError())))
    with pytest.raises(FetchFailure) as ei:
        provider.list_instances()
    assert "Forbidden" in str(ei.value)
    assert ei.value.retryable is True


def test_list_instances_uses_latest_published_client() -> None:
    old = _FakeCoreV1([_v1pod("old", "n", "Running")])
    new = _FakeCoreV1([_v1pod("new", "n", "Running")])
    active = ActiveClient(old, context_name="dev")
    provider = KubernetesSnapshotProvider(active)
    assert [s.name for s in provider.list_instances()] == ["old"]
    active.publish(new, "prod")
    assert [s.name for s in provider.list_instances()] == ["new"]
