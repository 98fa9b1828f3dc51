"""End-to-end CLI runs over in-memory adapters: exit codes and written reports."""
from __future__ import annotations

import json
from datetime import timedelta

import pytest
import yaml

from readiness import cli
from readiness.adapters.base import ArgoAppState, ConfluencePage, HelmChartState, JenkinsBuild, PullRequestState
from readiness.common.cancellation import CancellationToken
from readiness.common.utils import utc_now

CONFIG = {
    "release": {"service": "payments-api", "version": "1.4.2", "commit": "3f9c2e1a7b40d1"},
    "runner": {"grace_period": "5s"},
    "checks": {
        "deployment": {"required": True, "params": {"app": "payments-api-staging"}},
        "regression": {"required": True, "freshness_threshold": "24h", "params": {"job": "payments/regression"}},
        "certification": {
            "required": True,
            "sub_checks": {
                "perf": {"source": "jenkins", "job": "payments/perf"},
                "chaos": {"required": False, "source": "confluence", "page_id": "4242"},
                "dr": {"source": "jenkins", "job": "payments/dr"},
            },
        },
        "pre_release": {
            "required": True,
            "sub_checks": {
                "helm_chart": {"repo": "acme/charts", "chart_path": "charts/payments", "lint_job": "helm-lint"},
                "install_steps": {"page_id": "5151"},
                "customer_docs": {"repo": "acme/docs", "pr": 88},
            },
        },
        "change_management": {
            "required": True,
            "params": {"evidence_path": "evidence/cm.json", "cm_reference": "CHG0012345"},
        },
    },
}


def _build(job, age=timedelta(hours=2), result="SUCCESS"):
    return JenkinsBuild(job=job, number=12, result=result, timestamp=utc_now() - age)


@pytest.fixture
def workspace(tmp_path, monkeypatch, adapters, argocd, jenkins, github, confluence):
    now = utc_now()
    argocd.apps["payments-api-staging"] = ArgoAppState(
        name="payments-api-staging",
        sync_status="Synced",
        health_status="Healthy",
        revision="3f9c2e1a7b40d1",
        retrieved_at=now,
    )
    for job in ("payments/regression", "payments/perf", "payments/dr", "helm-lint"):
        jenkins.builds[job] = _build(job)
    for page_id in ("4242", "5151"):
        confluence.pages[page_id] = ConfluencePage(
            page_id=page_id, title=f"page {page_id}", space="OPS", updated_at=now - timedelta(hours=1)
        )
    github.charts["charts/payments"] = HelmChartState(
        repo="acme/charts", chart_path="charts/payments", version="1.5.0", previous_version="1.4.0", ref="3f9c2e1a7b40d1"
    )
    github.pulls[("acme/docs", 88)] = PullRequestState(repo="acme/docs", number=88, state="closed", merged=True)

    evidence = tmp_path / "evidence"
    evidence.mkdir()
    (evidence / "cm.json").write_text(
        json.dumps(
            {
                "number": "CHG0012345",
                "state": "Scheduled",
                "exported_at": (now - timedelta(hours=1)).isoformat(),
                "tasks": [{"name": "Regression testing", "type": "testing", "state": "Closed Complete"}],
            }
        ),
        encoding="utf-8",
    )
    config = tmp_path / "readiness.yml"
    config.write_text(yaml.safe_dump(CONFIG), encoding="utf-8")

    monkeypatch.setattr(cli, "build_adapter_set", lambda settings: adapters)
    monkeypatch.delenv("READINESS_BUILD_ID", raising=False)
    monkeypatch.delenv("BUILD_ID", raising=False)
    return tmp_path


def _run(workspace, *extra):
    return cli.main(
        ["validate", "--config", str(workspace / "readiness.yml"), "--out", str(workspace / "out"), *extra]
    )


def _doc(workspace):
    return json.loads((workspace / "out" / "readiness_report.json").read_text(encoding="utf-8"))


def test_all_green_exits_zero(workspace, capsys):
    assert _run(workspace) == cli.EXIT_GREEN
    assert _doc(workspace)["overall_status"] == "GREEN"
    assert (workspace / "out" / "readiness_report.md").exists()
    assert (workspace / "out" / "readiness_report.html").exists()
    assert "overall_status=GREEN" in capsys.readouterr().out


def test_stale_regression_exits_one(workspace, jenkins):
    jenkins.builds["payments/regression"] = _build("payments/regression", age=timedelta(hours=30))
    assert _run(workspace) == cli.EXIT_YELLOW
    doc = _doc(workspace)
    assert [c["status"] for c in doc["checks"]] == ["GREEN", "YELLOW", "GREEN", "GREEN", "GREEN"]


def test_out_of_sync_deployment_exits_two(workspace, argocd):
    argocd.apps["payments-api-staging"] = ArgoAppState(
        name="payments-api-staging",
        sync_status="OutOfSync",
        health_status="Healthy",
        revision="3f9c2e1a7b40d1",
        retrieved_at=utc_now(),
    )
    assert _run(workspace) == cli.EXIT_RED
    doc = _doc(workspace)
    assert doc["blocking"] == ["deployment"]
    assert [c["status"] for c in doc["checks"]] == ["RED", "GREEN", "GREEN", "GREEN", "GREEN"]


def test_invalid_policy_exits_three_before_any_check(workspace, argocd):
    broken = dict(CONFIG, checks=dict(CONFIG["checks"], deployment={"params": {"app": "x"}}))
    (workspace / "readiness.yml").write_text(yaml.safe_dump(broken), encoding="utf-8")
    assert _run(workspace) == cli.EXIT_TOOL_FAILURE
    assert argocd.calls == []
    assert not (workspace / "out").exists()


def test_missing_config_exits_three(tmp_path):
    assert cli.main(["validate", "--config", str(tmp_path / "nope.yml"), "--out", str(tmp_path)]) == 3


def test_unknown_format_exits_three(workspace):
    assert _run(workspace, "--format", "json,pdf") == cli.EXIT_TOOL_FAILURE


def test_unwritable_output_exits_three(workspace):
    (workspace / "out").write_text("a file, not a directory")
    assert _run(workspace) == cli.EXIT_TOOL_FAILURE


def test_cancelled_run_writes_report_and_exits_three(workspace, monkeypatch):
    token = CancellationToken()
    token.cancel("SIGTERM")
    monkeypatch.setattr(cli.CancellationToken, "install_signal_handlers", classmethod(lambda cls: token))
    assert _run(workspace) == cli.EXIT_TOOL_FAILURE
    doc = _doc(workspace)
    assert doc["incomplete"] is True
    assert {c["reasons"][0] for c in doc["checks"]} == {"evaluation incomplete"}


def test_build_id_from_environment(workspace, monkeypatch):
    monkeypatch.setenv("READINESS_BUILD_ID", "jenkins-release-981")
    _run(workspace, "--format", "json")
    assert _doc(workspace)["build_id"] == "jenkins-release-981"


def test_cli_build_id_wins(workspace, monkeypatch):
    monkeypatch.setenv("BUILD_ID", "from-env")
    _run(workspace, "--format", "json", "--build-id", "from-cli")
    assert _doc(workspace)["build_id"] == "from-cli"


def test_only_requested_formats_written(workspace):
    _run(workspace, "--format", "md")
    assert [p.name for p in (workspace / "out").iterdir()] == ["readiness_report.md"]


def test_bad_log_level_is_usage_error(workspace):
    with pytest.raises(SystemExit) as excinfo:
        _run(workspace, "--log-level", "chatty")
    assert excinfo.value.code == 2
