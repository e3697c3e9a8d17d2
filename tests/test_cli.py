from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import pytest

import main as cli
from podmon.core.errors import FetchFailure
from podmon.core.models import WorkloadSnapshot
from podmon.service import MonitorService

REPO_ROOT = Path(__file__).resolve().parents[1]


class _FakeProvider:
    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail

    def list_instances(self, namespace: Optional[str] = None, *, timeout: Optional[float] = None):  # type: ignore[no-untyped-def]
        if self.fail is not None:
            raise self.fail
        return [WorkloadSnapshot(namespace="a", name="p1", phase="Failed")]


def _install(monkeypatch: pytest.MonkeyPatch, provider: _FakeProvider) -> None:
    def _build(settings):  # type: ignore[no-untyped-def]
        return MonitorService(settings.monitoring, provider)

    monkeypatch.setattr("podmon.service.build_service", _build)


def test_cli_prints_report(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _FakeProvider())
    monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(REPO_ROOT / "config.yaml")])
    cli.main()
    out = capsys.readouterr().out
    assert "Namespace Statistics (sorted by severity):" in out
    assert "Namespace: a (Score: 1.0, 1 errors)" in out


def test_cli_dump_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _FakeProvider())
    monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(REPO_ROOT / "config.yaml"), "--dump-json"])
    cli.main()
    payload = json.loads(capsys.readouterr().out)
    assert payload["namespaces"][0]["name"] == "a"
    assert payload["errors"][0]["kind"] == "InstanceFailed"


def test_cli_fetch_failure_exits_nonzero(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _FakeProvider(fail=FetchFailure("connection refused")))
    monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(REPO_ROOT / "config.yaml")])
    with pytest.raises(SystemExit) as ei:
        cli.main()
    assert ei.value.code == 1
    assert "fetch_failure" in capsys.readouterr().err


def test_cli_bad_config_exits_2(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    bad = tmp_path / "c.yaml"
    bad.write_text("monitoring: {}\n", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(bad)])
    with pytest.raises(SystemExit) as ei:
        cli.main()
    assert ei.value.code == 2
