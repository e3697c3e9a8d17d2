"""Kubeconfig-backed context store.

Reads the kubeconfig YAML directly (PyYAML) so context listing does not depend on the
kubernetes client's global config state. Persisting only rewrites `current-context`; the
write goes to a temp file next to the kubeconfig and is moved into place with
`os.replace`, so readers never see a half-written file.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import yaml

from podmon.core.errors import ConfigurationInvalid, PersistFailure
from podmon.core.models import ContextProfile, ContextSet

logger = logging.getLogger(__name__)


@runtime_checkable
class ContextStore(Protocol):
    def load_contexts(self) -> ContextSet: ...

    def persist(self, context_set: ContextSet, *, timeout: Optional[float] = None) -> None: ...


def _named_entries(raw: Dict[str, Any], key: str, inner: str) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    entries = raw.get(key) or []
    if not isinstance(entries, list):
        raise ConfigurationInvalid(f"kubeconfig `{key}` must be a list")
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        body = entry.get(inner)
        out[str(entry["name"])] = body if isinstance(body, dict) else {}
    return out


def parse_kubeconfig(raw: Dict[str, Any]) -> ContextSet:
    """
    Build a `ContextSet` from a parsed kubeconfig document.

    `server` on each profile is resolved from the referenced cluster entry; it stays None
    when the entry is missing so the switcher can reject it with a precise error.
    """
    clusters = _named_entries(raw, "clusters", "cluster")
    contexts = _named_entries(raw, "contexts", "context")
    if not contexts:
        raise ConfigurationInvalid("kubeconfig defines no contexts")

    profiles: Dict[str, ContextProfile] = {}
    for name, ctx in contexts.items():
        cluster_ref = (ctx.get("cluster") or "").strip() or None
        cluster = clusters.get(cluster_ref or "") or {}
        profiles[name] = ContextProfile(
            name=name,
            cluster_ref=cluster_ref,
            server=(cluster.get("server") or "").strip() or None,
            user=ctx.get("user") or None,
            namespace=ctx.get("namespace") or None,
        )

    current = str(raw.get("current-context") or "").strip()
    if not current:
        current = sorted(profiles)[0]
    elif current not in profiles:
        raise ConfigurationInvalid(f"kubeconfig current-context {current!r} does not reference a defined context")
    return ContextSet(current_context=current, contexts=profiles)


class KubeconfigContextStore:
    def __init__(self, path: str) -> None:
        self.path = Path(os.path.expanduser(path))

    def _read_raw(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationInvalid(f"kubeconfig not found: {self.path}") from e
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationInvalid(f"failed to read kubeconfig {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationInvalid(f"kubeconfig {self.path} is not a mapping")
        return raw

    def load_contexts(self) -> ContextSet:
        return parse_kubeconfig(self._read_raw())

    def context_names(self) -> List[str]:
        return self.load_contexts().names()

    def persist(self, context_set: ContextSet, *, timeout: Optional[float] = None) -> None:
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            raw = self._read_raw()
        except ConfigurationInvalid as e:
            raise PersistFailure(str(e)) from e

        known = _named_entries(raw, "contexts", "context")
        if context_set.current_context not in known:
            raise PersistFailure(f"refusing to persist unknown context {context_set.current_context!r}")
        raw["current-context"] = context_set.current_context

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".kubeconfig-", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(raw, f, default_flow_style=False, sort_keys=False)
            if deadline is not None and time.monotonic() > deadline:
                raise PersistFailure("timed out writing kubeconfig")
            if self.path.exists():
                os.chmod(tmp_name, self.path.stat().st_mode & 0o777)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except PersistFailure:
            raise
        except OSError as e:
            raise PersistFailure(f"failed to write kubeconfig {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.info("Persisted current-context=%s to %s", context_set.current_context, self.path)
