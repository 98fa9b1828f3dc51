"""Certification bundle: perf, chaos and DR sub-checks.

Each sub-check reads either a Jenkins job result (``source: jenkins``) or
the presence and age of a Confluence page (``source: confluence``).
"""
from __future__ import annotations

from typing import List

from readiness.checks.base import MultiPartCheck, missing_params, missing_reason, missing_status
from readiness.checks.evidence import confluence_evidence, jenkins_evidence, judge_build, judge_page
from readiness.checks.regression import RELEASE_FIELDS, build_parameters
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import AdapterError, NotFound
from readiness.engine.policy import CheckPolicy, SubCheckPolicy
from readiness.engine.types import Status, SubResult

SOURCES = ("jenkins", "confluence")
EVIDENCE_MISSING = "evidence missing"


class CertificationCheck(MultiPartCheck):
    check_id = "certification"
    name = "Certification bundle (perf/chaos/dr)"
    SUB_CHECKS = ("perf", "chaos", "dr")

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        problems: List[str] = []
        for sub in policy.sub_checks:
            source = sub.params.get("source")
            if source not in SOURCES:
                problems.append(f"{sub.id}.source must be one of {', '.join(SOURCES)}")
            elif source == "jenkins":
                problems.extend(f"{sub.id}.{p} is required" for p in missing_params(sub.params, ("job",)))
                mapping = sub.params.get("match_parameters", {})
                if not isinstance(mapping, dict) or any(v not in RELEASE_FIELDS for v in mapping.values()):
                    problems.append(f"{sub.id}.match_parameters must map parameters to release fields")
            elif not (sub.params.get("page_id") or sub.params.get("title")):
                problems.append(f"{sub.id} needs page_id or title for a confluence source")
        return problems

    def evaluate_sub(
        self,
        context: ExecutionContext,
        policy: CheckPolicy,
        sub_policy: SubCheckPolicy,
    ) -> SubResult:
        if sub_policy.params.get("source") == "jenkins":
            return self._from_jenkins(context, sub_policy)
        return self._from_confluence(context, sub_policy)

    def _from_jenkins(self, context: ExecutionContext, sub: SubCheckPolicy) -> SubResult:
        job = str(sub.params["job"])
        params = build_parameters(sub.params.get("match_parameters", {}), context.release)
        try:
            jenkins = self.adapter(context, "jenkins")
            build = self.fetch(context, "jenkins", jenkins.latest_build, job, params)
        except NotFound:
            return SubResult(sub.id, missing_status(sub), (f"{EVIDENCE_MISSING}: no {job} build",))
        except AdapterError as exc:
            return SubResult(sub.id, missing_status(sub), (missing_reason(exc),))
        status, reasons = judge_build(build, sub.freshness_threshold, context.now())
        return SubResult(sub.id, status, reasons, (jenkins_evidence(build),))

    def _from_confluence(self, context: ExecutionContext, sub: SubCheckPolicy) -> SubResult:
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
            return SubResult(sub.id, missing_status(sub), (f"{EVIDENCE_MISSING}: page {label} not found",))
        except AdapterError as exc:
            return SubResult(sub.id, missing_status(sub), (missing_reason(exc),))
        status, reasons = judge_page(page, sub.freshness_threshold, context.now())
        return SubResult(sub.id, status, reasons, (confluence_evidence(page),))
