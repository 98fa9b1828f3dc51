from datetime import datetime, timedelta, timezone

import pytest

from readiness.engine.report import ReadinessReport
from readiness.engine.types import CheckResult, Evidence, ReleaseInfo, Status, SubResult

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
RELEASE = ReleaseInfo(service="payments-api", version="1.4.2", commit="3f9c2e1a")


def _result(check_id, status, reasons=None):
    if reasons is None:
        reasons = () if status is Status.GREEN else (f"{check_id} not ready",)
    return CheckResult.timed(
        check_id=check_id,
        name=check_id.title(),
        status=status,
        summary=f"{check_id} {status.value}",
        reasons=reasons,
        evidence=(Evidence(type="x", source_system="jenkins", identifier=f"{check_id}#1", timestamp=T0),),
        started_at=T0,
        ended_at=T0 + timedelta(seconds=1),
    )


def _report(statuses, required=None, **overrides):
    ids = ["deployment", "regression", "certification", "pre_release", "change_management"][: len(statuses)]
    required = required or [True] * len(statuses)
    base = {
        "release": RELEASE,
        "checks": [_result(cid, status) for cid, status in zip(ids, statuses)],
        "required": dict(zip(ids, required)),
        "generated_at": T0,
    }
    base.update(overrides)
    return ReadinessReport(**base)


G, Y, R = Status.GREEN, Status.YELLOW, Status.RED


class TestOverall:
    def test_one_stale_regression_is_yellow(self):
        report = _report([G, Y, G, G, G])
        assert report.overall_status is Status.YELLOW
        assert report.blocking == ["regression"]
        assert report.non_blocking == []

    def test_required_red_is_red(self):
        report = _report([R, G, G, G, G])
        assert report.overall_status is Status.RED
        assert report.blocking == ["deployment"]

    def test_optional_red_is_yellow_and_non_blocking(self):
        report = _report([G, G, G, R, G], required=[True, True, True, False, True])
        assert report.overall_status is Status.YELLOW
        assert report.blocking == []
        assert report.non_blocking == ["pre_release"]

    def test_summary_counts(self):
        report = _report([G, Y, R, G, G])
        assert report.summary == {"RED": 1, "YELLOW": 1, "GREEN": 3, "total": 5}


class TestValidation:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="duplicate"):
            ReadinessReport(
                release=RELEASE,
                checks=[_result("deployment", G), _result("deployment", G)],
                required={"deployment": True},
                generated_at=T0,
            )

    def test_required_flag_needed_for_every_check(self):
        with pytest.raises(ValueError, match="no required flag"):
            ReadinessReport(
                release=RELEASE,
                checks=[_result("deployment", G)],
                required={},
                generated_at=T0,
            )


class TestResults:
    def test_non_green_needs_reason(self):
        with pytest.raises(ValueError, match="without a reason"):
            _result("regression", Status.YELLOW, reasons=())

    def test_green_needs_evidence(self):
        with pytest.raises(ValueError, match="without evidence"):
            CheckResult.timed("regression", "Regression", G, "ok", (), (), T0, T0)

    def test_sub_result_needs_reason(self):
        with pytest.raises(ValueError):
            SubResult("perf", Status.RED)

    def test_end_before_start_is_clamped(self):
        result = CheckResult.timed("regression", "Regression", R, "no", ("x",), (), T0, T0 - timedelta(seconds=5))
        assert result.duration_ms == 0
        assert result.ended_at == T0

    def test_evidence_details_frozen(self):
        ev = Evidence(type="x", source_system="jenkins", identifier="j#1", details={"result": "SUCCESS"})
        with pytest.raises(TypeError):
            ev.details["result"] = "FAILURE"


def test_to_dict_carries_required_and_decision():
    report = _report([G, Y], required=[True, False], build_id="ci-77", incomplete=False)
    doc = report.to_dict()
    assert doc["overall_status"] == "YELLOW"
    assert doc["build_id"] == "ci-77"
    assert [c["required"] for c in doc["checks"]] == [True, False]
    assert doc["checks"][1]["reasons"] == ["regression not ready"]
    assert doc["non_blocking"] == ["regression"]
    assert doc["generated_at"] == T0.isoformat()
