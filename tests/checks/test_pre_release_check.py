from datetime import timedelta

import pytest

from readiness.adapters.base import ConfluencePage, HelmChartState, JenkinsBuild, PullRequestState
from readiness.checks.pre_release import PreReleaseCheck, parse_chart_version
from readiness.engine.types import Status

CHART = "charts/payments"


def _chart(**overrides):
    base = {
        "repo": "acme/charts",
        "chart_path": CHART,
        "version": "1.5.0",
        "previous_version": "1.4.0",
        "ref": "3f9c2e1a7b40d1",
        "url": "https://github.com/acme/charts/blob/3f9c2e1a7b40d1/charts/payments/Chart.yaml",
    }
    base.update(overrides)
    return HelmChartState(**base)


def _build(now, job, **overrides):
    base = {"job": job, "number": 31, "result": "SUCCESS", "timestamp": now - timedelta(hours=1)}
    base.update(overrides)
    return JenkinsBuild(**base)


def _pr(**overrides):
    base = {"repo": "acme/docs", "number": 88, "state": "closed", "merged": True, "url": "https://github.com/acme/docs/pull/88"}
    base.update(overrides)
    return PullRequestState(**base)


POLICY = {
    "required": True,
    "sub_checks": {
        "helm_chart": {"repo": "acme/charts", "chart_path": CHART, "lint_job": "helm-lint"},
        "install_steps": {"page_id": "5151", "freshness_threshold": "3d"},
        "customer_docs": {"repo": "acme/docs", "pr": 88, "docs_job": "docs-build"},
    },
}


@pytest.fixture
def run(make_context):
    def _run():
        return PreReleaseCheck().run(make_context({PreReleaseCheck: POLICY}))

    return _run


@pytest.fixture
def ready(github, jenkins, confluence, now):
    github.charts[CHART] = _chart()
    github.pulls[("acme/docs", 88)] = _pr()
    jenkins.builds["helm-lint"] = _build(now, "helm-lint")
    confluence.pages["5151"] = ConfluencePage(
        page_id="5151", title="Install payments-api 1.4.2", space="OPS", updated_at=now - timedelta(days=1)
    )


def test_everything_ready_is_green(run, ready):
    result = run()
    assert result.status is Status.GREEN
    assert result.summary == "3/3 sub-checks green"


def test_chart_not_bumped_is_red(run, ready, github):
    github.charts[CHART] = _chart(version="1.4.0")
    result = run()
    assert result.status is Status.RED
    assert result.reasons == ("helm_chart: chart version not bumped: 1.4.0 vs 1.4.0 on main",)


def test_new_chart_has_nothing_to_bump(run, ready, github):
    github.charts[CHART] = _chart(previous_version=None)
    assert run().status is Status.GREEN


def test_unparsable_chart_version_is_red(run, ready, github):
    github.charts[CHART] = _chart(version="latest")
    result = run()
    assert result.status is Status.RED
    assert "is not a version" in result.reasons[0]


def test_failed_lint_is_red(run, ready, jenkins, now):
    jenkins.builds["helm-lint"] = _build(now, "helm-lint", result="FAILURE")
    result = run()
    assert result.status is Status.RED
    assert result.reasons == ("helm_chart: build helm-lint#31 result FAILURE",)


def test_missing_chart_is_red(run, ready, github):
    del github.charts[CHART]
    result = run()
    assert result.status is Status.RED
    assert result.reasons == (f"helm_chart: evidence missing: chart {CHART} not found at 3f9c2e1a7b40d1",)
    assert result.sub_results[0].status is Status.RED


def test_optional_install_steps_missing_is_yellow(make_context, ready, confluence):
    del confluence.pages["5151"]
    subs = dict(POLICY["sub_checks"], install_steps={"page_id": "5151", "required": False})
    result = PreReleaseCheck().run(make_context({PreReleaseCheck: {"required": True, "sub_checks": subs}}))
    assert result.status is Status.YELLOW
    assert result.sub_results[1].status is Status.YELLOW
    assert result.reasons == ("install_steps: evidence missing: install steps page 5151 not found, optional",)


def test_stale_install_steps_are_yellow(run, ready, confluence, now):
    confluence.pages["5151"] = ConfluencePage(
        page_id="5151", title="Install payments-api 1.4.2", space="OPS", updated_at=now - timedelta(days=5)
    )
    result = run()
    assert result.status is Status.YELLOW
    assert result.reasons == (
        "install_steps: page 'Install payments-api 1.4.2': stale evidence: 5d old, threshold 3d",
    )


def test_unmerged_docs_pr_falls_back_to_docs_build(run, ready, github, jenkins, now):
    github.pulls[("acme/docs", 88)] = _pr(state="open", merged=False)
    jenkins.builds["docs-build"] = _build(now, "docs-build")
    result = run()
    assert result.status is Status.GREEN
    assert {ev.identifier for ev in result.sub_results[2].evidence} == {"acme/docs#88", "docs-build#31"}


def test_unmerged_docs_pr_without_docs_build_is_red(run, ready, github):
    github.pulls[("acme/docs", 88)] = _pr(state="open", merged=False)
    result = run()
    assert result.status is Status.RED
    assert result.reasons == (
        "customer_docs: docs PR acme/docs#88 not merged (open)",
        "customer_docs: no docs-build docs build",
    )


@pytest.mark.parametrize(
    "value, expected",
    [("1.4.2", (1, 4, 2)), ("v2.0", (2, 0, 0)), ("3", (3, 0, 0)), ("1.10.0-rc.1", (1, 10, 0)), ("", None), ("x1", None)],
)
def test_parse_chart_version(value, expected):
    assert parse_chart_version(value) == expected
