"""Typed failures surfaced by the monitor core.

Classification, aggregation and scoring are pure and never raise on well-formed input;
everything here originates at the snapshot-provider or context-store boundary, or at
startup configuration.
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base class. `retryable` tells a caller whether trying again later can help."""

    code = "monitor_error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchFailure(MonitorError):
    """Snapshot provider unreachable or returned an error. Never retried internally."""

    code = "fetch_failure"
    retryable = True


class ContextNotFound(MonitorError):
    code = "context_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"context {name!r} not found")
        self.name = name


class ClusterRefInvalid(MonitorError):
    code = "cluster_ref_invalid"


class PersistFailure(MonitorError):
    code = "persist_failure"


class ClientConstructionFailure(MonitorError):
    code = "client_construction_failure"


class ConfigurationInvalid(MonitorError):
    """Bad weights/threshold/config file. Fatal at initialization."""

    code = "configuration_invalid"


class ContextsUnavailable(MonitorError):
    """Running without a kubeconfig (in-cluster mode); there are no contexts to manage."""

    code = "contexts_unavailable"


class SwitchInProgress(MonitorError):
    code = "switch_in_progress"
    retryable = True


class NotReady(MonitorError):
    """No poll cycle has completed yet; nothing has failed."""

    code = "not_ready"
    retryable = True
