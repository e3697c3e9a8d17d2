"""Kubeconfig context switching as a short-lived transaction.

Order of operations for `switch_to(name)`:
1. serialize (at most one switch in flight)
2. validate the target exists and its cluster entry has a server
3. construct the new client
4. persist the new current-context
5. publish the new client handle

Construction happens before persistence so a failure can never leave the kubeconfig
pointing at a context this process cannot use. Any rejection leaves both the active
handle and the persisted file untouched.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from podmon.contexts.handle import ActiveClient, ClientHandle
from podmon.core.errors import (
    ClientConstructionFailure,
    ClusterRefInvalid,
    ContextNotFound,
    MonitorError,
    PersistFailure,
    SwitchInProgress,
)
from podmon.core.models import ContextProfile, ContextSet
from podmon.providers.kubeconfig_store import ContextStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ContextProfile], Any]


class SwitchState(str, Enum):
    ACTIVE = "active"
    SWITCHING = "switching"


def validate_profile(profile: ContextProfile) -> None:
    if not profile.cluster_ref:
        raise ClusterRefInvalid(f"context {profile.name!r} has no cluster defined")
    if not (profile.server or "").strip():
        raise ClusterRefInvalid(
            f"cluster {profile.cluster_ref!r} is missing or has no server defined for context {profile.name!r}"
        )


def _close_client(client: Any) -> None:
    api_client = getattr(client, "api_client", None)
    close = getattr(api_client, "close", None)
    if callable(close):
        try:
            close()
        except Exception as e:
            logger.debug("Discarded client did not close cleanly: %s", e)


class ContextSwitcher:
    def __init__(self, store: ContextStore, active: ActiveClient, client_factory: ClientFactory) -> None:
        self._store = store
        self._active = active
        self._client_factory = client_factory
        self._switch_lock = threading.Lock()
        self._state = SwitchState.ACTIVE

    @classmethod
    def bootstrap(
        cls, store: ContextStore, client_factory: ClientFactory, *, default_context: Optional[str] = None
    ) -> "ContextSwitcher":
        """
        Build the initial client from `default_context` (or the kubeconfig's current-context).

        The override is not persisted, matching kubectl's `--context` behavior.
        """
        cs = store.load_contexts()
        name = (default_context or "").strip() or cs.current_context
        profile = cs.contexts.get(name)
        if profile is None:
            raise ContextNotFound(name)
        validate_profile(profile)
        client = _build_client(client_factory, profile)
        logger.info("Using Kubernetes context %s (cluster=%s)", name, profile.cluster_ref)
        return cls(store, ActiveClient(client, context_name=name), client_factory)

    @property
    def state(self) -> SwitchState:
        return self._state

    @property
    def active(self) -> ActiveClient:
        return self._active

    def active_handle(self) -> ClientHandle:
        return self._active.current()

    def list_contexts(self) -> ContextSet:
        cs = self._store.load_contexts()
        name = self._active.current().context_name
        if name and name in cs.contexts:
            return cs.with_current(name)
        return cs

    def switch_to(self, name: str, *, timeout: Optional[float] = None) -> ContextSet:
        deadline = None if timeout is None else time.monotonic() + timeout
        if not self._switch_lock.acquire(timeout=-1 if timeout is None else max(0.0, timeout)):
            raise SwitchInProgress("another context switch is in progress")
        try:
            self._state = SwitchState.SWITCHING
            target = (name or "").strip()
            logger.info("Switching Kubernetes context to %s", target)
            try:
                updated, handle = self._switch_locked(target, deadline)
            except MonitorError as e:
                logger.warning("Context switch to %s rejected: %s", target, e)
                raise
            logger.info("Switched Kubernetes context to %s (client version %d)", target, handle.version)
            return updated
        finally:
            self._state = SwitchState.ACTIVE
            self._switch_lock.release()

    def _switch_locked(self, target: str, deadline: Optional[float]) -> Tuple[ContextSet, ClientHandle]:
        cs = self._store.load_contexts()
        profile = cs.contexts.get(target)
        if profile is None:
            raise ContextNotFound(target)
        validate_profile(profile)

        client = _build_client(self._client_factory, profile)

        updated = cs.with_current(target)
        remaining = None if deadline is None else deadline - time.monotonic()
        try:
            if remaining is not None and remaining <= 0:
                raise PersistFailure("timed out before persisting context")
            self._store.persist(updated, timeout=remaining)
        except PersistFailure:
            _close_client(client)
            raise
        except Exception as e:
            _close_client(client)
            raise PersistFailure(f"failed to persist context {target!r}: {e}") from e

        handle = self._active.publish(client, target)
        return updated, handle


def _build_client(client_factory: ClientFactory, profile: ContextProfile) -> Any:
    try:
        return client_factory(profile)
    except ClientConstructionFailure:
        raise
    except Exception as e:
        raise ClientConstructionFailure(f"failed to create client for context {profile.name!r}: {e}") from e
