"""Pre-release readiness: Helm chart, release install steps, customer docs.

- helm_chart: chart version bumped over ``base_ref`` and the lint/build job
  passed.
- install_steps: Confluence page exists and was updated within the
  freshness window (stale -> YELLOW).
- customer_docs: docs PR merged, or the docs build succeeded.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from readiness.checks.base import MultiPartCheck, missing_params, missing_reason, missing_status
from readiness.checks.evidence import (
    confluence_evidence,
    jenkins_evidence,
    judge_build,
    judge_page,
    pull_request_evidence,
)
from readiness.checks.regression import build_parameters
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import AdapterError, NotFound
from readiness.engine.policy import CheckPolicy, SubCheckPolicy
from readiness.engine.types import Evidence, Status, SubResult

_VERSION_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_chart_version(value: Optional[str]) -> Optional[Tuple[int, int, int]]:
    if not value:
        return None
    match = _VERSION_RE.match(value.strip())
    if not match:
        return None
    return tuple(int(part or 0) for part in match.groups())  # type: ignore[return-value]


class PreReleaseCheck(MultiPartCheck):
    check_id = "pre_release"
    name = "Pre-release readiness"
    SUB_CHECKS = ("helm_chart", "install_steps", "customer_docs")

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        problems: List[str] = []
        for sub in policy.sub_checks:
            if sub.id == "helm_chart":
                missing = missing_params(sub.params, ("repo", "chart_path", "lint_job"))
                problems.extend(f"helm_chart.{name} is required" for name in missing)
            elif sub.id == "install_steps":
                if not (sub.params.get("page_id") or sub.params.get("title")):
                    problems.append("install_steps needs page_id or title")
            elif sub.id == "customer_docs":
                has_pr = sub.params.get("repo") and sub.params.get("pr")
                if not (has_pr or sub.params.get("docs_job")):
                    problems.append("customer_docs needs repo+pr or docs_job")
                if has_pr and not str(sub.params["pr"]).isdigit():
                    problems.append("customer_docs.pr must be a pull request number")
        return problems

    def evaluate_sub(
        self,
        context: ExecutionContext,
        policy: CheckPolicy,
        sub_policy: SubCheckPolicy,
    ) -> SubResult:
        handler = {
            "helm_chart": self._helm_chart,
            "install_steps": self._install_steps,
            "customer_docs": self._customer_docs,
        }[sub_policy.id]
        return handler(context, sub_policy)

    # -- helm chart ---------------------------------------------------------

    def _helm_chart(self, context: ExecutionContext, sub: SubCheckPolicy) -> SubResult:
        params = sub.params
        release = context.release
        ref = str(params.get("ref") or release.commit or f"v{release.version}")
        base_ref = str(params.get("base_ref") or "main")
        lint_job = str(params["lint_job"])
        evidence: List[Evidence] = []

        try:
            github = self.adapter(context, "github")
            chart = self.fetch(
                context, "github", github.chart_state, str(params["repo"]), str(params["chart_path"]), ref, base_ref
            )
        except NotFound:
            reason = f"evidence missing: chart {params['chart_path']} not found at {ref}"
            return SubResult(sub.id, missing_status(sub), (reason,))
        except AdapterError as exc:
            return SubResult(sub.id, missing_status(sub), (missing_reason(exc),))
        evidence.append(
            Evidence(
                type="helm_chart",
                source_system="github",
                identifier=f"{chart.repo}:{chart.chart_path}@{chart.ref}",
                url=chart.url,
                details={"version": chart.version, "previous_version": chart.previous_version},
            )
        )

        try:
            jenkins = self.adapter(context, "jenkins")
            lint_params = build_parameters(params.get("match_parameters", {}), release)
            build = self.fetch(context, "jenkins", jenkins.latest_build, lint_job, lint_params)
        except NotFound:
            return SubResult(sub.id, missing_status(sub), (f"evidence missing: no {lint_job} lint/build run",), evidence)
        except AdapterError as exc:
            return SubResult(sub.id, missing_status(sub), (missing_reason(exc),), evidence)
        evidence.append(jenkins_evidence(build))

        current = parse_chart_version(chart.version)
        if current is None:
            return SubResult(sub.id, Status.RED, (f"chart version {chart.version!r} is not a version",), evidence)
        if chart.previous_version is not None:
            previous = parse_chart_version(chart.previous_version)
            if previous is None or current <= previous:
                return SubResult(
                    sub.id,
                    Status.RED,
                    (f"chart version not bumped: {chart.version} vs {chart.previous_version} on {base_ref}",),
                    evidence,
                )

        status, reasons = judge_build(build, sub.freshness_threshold, context.now())
        return SubResult(sub.id, status, reasons, evidence)

    # -- install steps ------------------------------------------------------

    def _install_steps(self, context: ExecutionContext, sub: SubCheckPolicy) -> SubResult:
        params = sub.params
        try:
            confluence = self.adapter(context, "confluence")
            page = self.fetch(
                context,
                "confluence",
                confluence.page,
                page_id=params.get("page_id"),
                space=params.get("space"),
                title=params.get("title"),
            )
        except NotFound:
            label = params.get("title") or params.get("page_id")
            return SubResult(sub.id, missing_status(sub), (f"evidence missing: install steps page {label} not found",))
        except AdapterError as exc:
            return SubResult(sub.id, missing_status(sub), (missing_reason(exc),))
        status, reasons = judge_page(page, sub.freshness_threshold, context.now())
        return SubResult(sub.id, status, reasons, (confluence_evidence(page),))

    # -- customer docs ------------------------------------------------------

    def _customer_docs(self, context: ExecutionContext, sub: SubCheckPolicy) -> SubResult:
        params = sub.params
        reasons: List[str] = []
        evidence: List[Evidence] = []

        if params.get("repo") and params.get("pr"):
            try:
                github = self.adapter(context, "github")
                pr = self.fetch(context, "github", github.pull_request, str(params["repo"]), int(params["pr"]))
            except NotFound:
                reasons.append(f"docs PR {params['repo']}#{params['pr']} not found")
            except AdapterError as exc:
                reasons.append(missing_reason(exc))
            else:
                evidence.append(pull_request_evidence(pr))
                if pr.merged:
                    return SubResult(sub.id, Status.GREEN, (), evidence)
                reasons.append(f"docs PR {pr.repo}#{pr.number} not merged ({pr.state})")

        if params.get("docs_job"):
            docs_job = str(params["docs_job"])
            try:
                jenkins = self.adapter(context, "jenkins")
                build_params = build_parameters(params.get("match_parameters", {}), context.release)
                build = self.fetch(context, "jenkins", jenkins.latest_build, docs_job, build_params)
            except NotFound:
                reasons.append(f"no {docs_job} docs build")
            except AdapterError as exc:
                reasons.append(missing_reason(exc))
            else:
                evidence.append(jenkins_evidence(build))
                status, build_reasons = judge_build(build, sub.freshness_threshold, context.now())
                if status is not Status.RED:
                    return SubResult(sub.id, status, build_reasons, evidence)
                reasons.extend(build_reasons)

        # Neither path proved the docs are ready.
        status = Status.RED if evidence else missing_status(sub)
        return SubResult(sub.id, status, tuple(reasons) or ("evidence missing",), evidence)
