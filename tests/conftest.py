"""
Pytest config.

Pins the repo root onto sys.path so `import podmon` works even when a global `pytest`
entrypoint is used without installing the project.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


KUBECONFIG_DOC = {
    "apiVersion": "v1",
    "kind": "Config",
    "clusters": [
        {"name": "dev-cluster", "cluster": {"server": "https://dev.example:6443"}},
        {"name": "prod-cluster", "cluster": {"server": "https://prod.example:6443"}},
        {"name": "serverless", "cluster": {"insecure-skip-tls-verify": True}},
    ],
    "contexts": [
        {"name": "dev", "context": {"cluster": "dev-cluster", "user": "dev-user"}},
        {"name": "prod", "context": {"cluster": "prod-cluster", "user": "prod-user", "namespace": "apps"}},
        {"name": "no-server", "context": {"cluster": "serverless", "user": "dev-user"}},
        {"name": "dangling", "context": {"cluster": "missing-cluster", "user": "dev-user"}},
        {"name": "no-cluster", "context": {"user": "dev-user"}},
    ],
    "users": [{"name": "dev-user", "user": {"token": "t1"}}, {"name": "prod-user", "user": {"token": "t2"}}],
    "current-context": "dev",
}


@pytest.fixture
def kubeconfig_path(tmp_path: Path) -> Path:
    p = tmp_path / "kubeconfig"
    p.write_text(yaml.safe_dump(KUBECONFIG_DOC, sort_keys=False), encoding="utf-8")
    return p


@pytest.fixture
def weights():  # type: ignore[no-untyped-def]
    from podmon.core.models import ScoringWeights

    return ScoringWeights.reference()
