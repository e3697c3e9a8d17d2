"""Kubernetes API access: pod snapshots and client construction (read-only)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from podmon.contexts.handle import ActiveClient
from podmon.core.errors import ClientConstructionFailure, FetchFailure
from podmon.core.models import ContainerStatusSnapshot, ContainerWaiting, ContextProfile, WorkloadSnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotProvider(Protocol):
    def list_instances(
        self, namespace: Optional[str] = None, *, timeout: Optional[float] = None
    ) -> List[WorkloadSnapshot]: ...


def pod_to_snapshot(pod: Any) -> WorkloadSnapshot:
    """
    Convert a `V1Pod` (or any object with the same attribute shape) into a snapshot.

    Missing status sections are treated as empty; only the waiting sub-state of each
    container status is kept.
    """
    metadata = getattr(pod, "metadata", None)
    status = getattr(pod, "status", None)

    statuses: List[ContainerStatusSnapshot] = []
    for cs in getattr(status, "container_statuses", None) or []:
        state = getattr(cs, "state", None)
        waiting = getattr(state, "waiting", None)
        statuses.append(
            ContainerStatusSnapshot(
                name=getattr(cs, "name", None) or "",
                restart_count=int(getattr(cs, "restart_count", None) or 0),
                waiting=(
                    ContainerWaiting(
                        reason=getattr(waiting, "reason", None) or "",
                        message=getattr(waiting, "message", None) or "",
                    )
                    if waiting is not None
                    else None
                ),
            )
        )

    return WorkloadSnapshot(
        namespace=getattr(metadata, "namespace", None) or "",
        name=getattr(metadata, "name", None) or "",
        phase=getattr(status, "phase", None),
        container_statuses=statuses,
    )


def _describe_api_error(e: Exception) -> str:
    reason = getattr(e, "reason", None)
    body = getattr(e, "body", None)
    if reason is not None:
        return f"Kubernetes API error: {reason} - {body}" if body else f"Kubernetes API error: {reason}"
    return f"Failed to list pods: {e}"


class KubernetesSnapshotProvider:
    """Lists pods through whichever CoreV1Api handle is currently published."""

    def __init__(self, active: ActiveClient) -> None:
        self.active = active

    def list_instances(
        self, namespace: Optional[str] = None, *, timeout: Optional[float] = None
    ) -> List[WorkloadSnapshot]:
        v1 = self.active.current().client
        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["_request_timeout"] = timeout
        try:
            if namespace:
                pod_list = v1.list_namespaced_pod(namespace=namespace, **kwargs)
            else:
                pod_list = v1.list_pod_for_all_namespaces(**kwargs)
        except Exception as e:
            raise FetchFailure(_describe_api_error(e)) from e
        snapshots = [pod_to_snapshot(p) for p in (getattr(pod_list, "items", None) or [])]
        logger.debug("Listed %d pods (namespace=%s)", len(snapshots), namespace or "*")
        return snapshots


def kube_client_factory(kubeconfig_path: str) -> Callable[[ContextProfile], Any]:
    """Return a factory building a CoreV1Api bound to one kubeconfig context."""

    def _build(profile: ContextProfile) -> Any:
        try:
            from kubernetes import client, config
        except Exception as import_err:
            raise ClientConstructionFailure(f"Kubernetes client not available: {import_err}")

        try:
            api_client = config.new_client_from_config(
                config_file=kubeconfig_path, context=profile.name, persist_config=False
            )
        except Exception as e:
            raise ClientConstructionFailure(f"failed to load context {profile.name!r}: {e}") from e
        return client.CoreV1Api(api_client=api_client)

    return _build


def in_cluster_client() -> Any:
    """CoreV1Api from the pod's service account (no contexts to switch)."""
    try:
        from kubernetes import client, config
    except Exception as import_err:
        raise ClientConstructionFailure(f"Kubernetes client not available: {import_err}")

    try:
        config.load_incluster_config()
    except config.ConfigException as e:
        raise ClientConstructionFailure(f"Error creating in-cluster config: {e}") from e
    return client.CoreV1Api()
