"""Monitor service: the operations the HTTP and CLI layers call.

Each call fetches a fresh snapshot and runs the pure pipeline over it; nothing carries
over between calls except the last published `CycleResult` (for the poller).
"""

from __future__ import annotations

import logging
from typing import List, Optional

from podmon.config import MonitoringConfig, Settings
from podmon.contexts.switcher import ContextSwitcher
from podmon.core.errors import ContextsUnavailable
from podmon.core.models import ContextSet, CycleResult, ErrorRecord, NamespaceStats
from podmon.pipeline.classify import classify_instance_errors
from podmon.pipeline.pipeline import run_pipeline
from podmon.providers.k8s_provider import SnapshotProvider

logger = logging.getLogger(__name__)


class MonitorService:
    def __init__(
        self,
        monitoring: MonitoringConfig,
        provider: SnapshotProvider,
        switcher: Optional[ContextSwitcher] = None,
    ) -> None:
        self.monitoring = monitoring
        self.provider = provider
        self.switcher = switcher
        self._latest: Optional[CycleResult] = None

    @property
    def latest(self) -> Optional[CycleResult]:
        return self._latest

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.monitoring.request_timeout if timeout is None else timeout

    def _active_context_name(self) -> Optional[str]:
        if self.switcher is None:
            return None
        return self.switcher.active_handle().context_name

    def compute_namespace_stats(
        self, namespace: Optional[str] = None, *, timeout: Optional[float] = None
    ) -> List[NamespaceStats]:
        snapshots = self.provider.list_instances(namespace, timeout=self._timeout(timeout))
        ranked, _ = run_pipeline(
            snapshots, restart_threshold=self.monitoring.high_restart_threshold, weights=self.monitoring.weights
        )
        return ranked

    def classify_instance_errors(self, namespace: str, *, timeout: Optional[float] = None) -> List[ErrorRecord]:
        snapshots = self.provider.list_instances(namespace, timeout=self._timeout(timeout))
        return classify_instance_errors(
            snapshots, namespace, restart_threshold=self.monitoring.high_restart_threshold
        )

    def refresh(self, namespace: Optional[str] = None, *, timeout: Optional[float] = None) -> CycleResult:
        """Run one full fetch-classify-aggregate-score cycle and publish it as `latest`."""
        context_name = self._active_context_name()
        snapshots = self.provider.list_instances(namespace, timeout=self._timeout(timeout))
        ranked, records = run_pipeline(
            snapshots, restart_threshold=self.monitoring.high_restart_threshold, weights=self.monitoring.weights
        )
        result = CycleResult(context_name=context_name, namespaces=ranked, errors=records)
        self._latest = result
        logger.debug(
            "Cycle complete: %d pods, %d errors, %d namespaces", len(snapshots), len(records), len(ranked)
        )
        return result

    def list_contexts(self) -> ContextSet:
        if self.switcher is None:
            raise ContextsUnavailable("Not running with kubeconfig")
        return self.switcher.list_contexts()

    def switch_context(self, name: str, *, timeout: Optional[float] = None) -> ContextSet:
        if self.switcher is None:
            raise ContextsUnavailable("Not running with kubeconfig")
        return self.switcher.switch_to(name, timeout=self._timeout(timeout))


def build_service(settings: Settings) -> MonitorService:
    """
    Wire a service against a real cluster.

    In-cluster mode uses the pod's service account and has no context switcher.
    """
    from podmon.contexts.handle import ActiveClient
    from podmon.providers.k8s_provider import KubernetesSnapshotProvider, in_cluster_client, kube_client_factory
    from podmon.providers.kubeconfig_store import KubeconfigContextStore

    k8s = settings.kubernetes
    if k8s.use_in_cluster:
        active = ActiveClient(in_cluster_client(), context_name=None)
        logger.info("Using in-cluster Kubernetes configuration")
        return MonitorService(settings.monitoring, KubernetesSnapshotProvider(active))

    store = KubeconfigContextStore(k8s.kubeconfig_path)
    switcher = ContextSwitcher.bootstrap(
        store, kube_client_factory(k8s.kubeconfig_path), default_context=k8s.default_context
    )
    return MonitorService(settings.monitoring, KubernetesSnapshotProvider(switcher.active), switcher)
