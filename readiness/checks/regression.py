from __future__ import annotations

from typing import Dict, List, Mapping

from readiness.checks.base import BaseCheck, Verdict, missing_reason
from readiness.checks.evidence import jenkins_evidence, judge_build
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import AdapterError, NotFound
from readiness.engine.policy import CheckPolicy
from readiness.engine.types import ReleaseInfo, Status

DEFAULT_MATCH_PARAMETERS = {"RELEASE_VERSION": "version"}
RELEASE_FIELDS = ("service", "version", "commit", "environment")


def build_parameters(mapping: Mapping[str, str], release: ReleaseInfo) -> Dict[str, str]:
    """Translate ``{jenkins_param: release_field}`` into concrete parameter values."""
    return {param: str(getattr(release, field_name)) for param, field_name in mapping.items()}


class RegressionCheck(BaseCheck):
    """Latest Jenkins regression build for this release: result, then age."""

    check_id = "regression"
    name = "Regression test"
    REQUIRED_PARAMS = ("job",)

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        mapping = policy.param("match_parameters", DEFAULT_MATCH_PARAMETERS)
        if not isinstance(mapping, Mapping):
            return ["match_parameters must map Jenkins parameter names to release fields"]
        bad = sorted(str(v) for v in mapping.values() if v not in RELEASE_FIELDS)
        if bad:
            return [f"match_parameters references unknown release fields: {', '.join(bad)}"]
        return []

    def evaluate(self, context: ExecutionContext, policy: CheckPolicy) -> Verdict:
        job = str(policy.param("job"))
        params = build_parameters(policy.param("match_parameters", DEFAULT_MATCH_PARAMETERS), context.release)

        try:
            jenkins = self.adapter(context, "jenkins")
            build = self.fetch(context, "jenkins", jenkins.latest_build, job, params)
        except NotFound:
            return Verdict(Status.RED, f"no {job} build for {context.release.version}", ("no matching build",))
        except AdapterError as exc:
            return Verdict(Status.RED, f"{job} build unavailable", (missing_reason(exc),))

        status, reasons = judge_build(build, policy.freshness_threshold, context.now())
        label = f"{build.job}#{build.number}"
        if status is Status.GREEN:
            summary = f"{label} passed"
        elif status is Status.YELLOW:
            summary = f"{label} passed but evidence is stale"
        else:
            summary = f"{label} did not pass"
        return Verdict(status, summary, reasons, (jenkins_evidence(build),))
