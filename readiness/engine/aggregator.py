"""Fold named sub-check results into one ``CheckResult``."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from readiness.engine.policy import SubCheckPolicy
from readiness.engine.status_algebra import combine
from readiness.engine.types import CheckResult, Evidence, Status, SubResult

logger = logging.getLogger(__name__)

INCOMPLETE_REASON = "evaluation incomplete"


def _tag(sub: SubResult, reason: str) -> str:
    tagged = f"{sub.id}: {reason}"
    return tagged if sub.required else f"{tagged}, optional"


def aggregate(
    check_id: str,
    name: str,
    sub_results: Mapping[str, SubResult],
    declared: Sequence[SubCheckPolicy],
    started_at: datetime,
    ended_at: datetime,
) -> CheckResult:
    """Build the check result for a multi-part check.

    Sub-checks are folded in the policy-declared order so reasons are
    reproducible. A declared sub-check with no result counts as RED
    ("evaluation incomplete"); results for undeclared ids are ignored.
    """
    ordered: List[SubResult] = []
    for sub_policy in declared:
        sub = sub_results.get(sub_policy.id)
        if sub is None:
            sub = SubResult(id=sub_policy.id, status=Status.RED, reasons=(INCOMPLETE_REASON,))
        ordered.append(
            SubResult(
                id=sub.id,
                status=sub.status,
                reasons=sub.reasons,
                evidence=sub.evidence,
                required=sub_policy.required,
            )
        )
    ignored = sorted(set(sub_results) - {p.id for p in declared})
    if ignored:
        logger.warning("%s: ignoring undeclared sub-checks %s", check_id, ", ".join(ignored))

    status = combine([s.status for s in ordered], [s.required for s in ordered])

    reasons: List[str] = []
    evidence: List[Evidence] = []
    seen: Set[Tuple[str, str, str]] = set()
    for sub in ordered:
        reasons.extend(_tag(sub, reason) for reason in sub.reasons)
        for ev in sub.evidence:
            if ev.key in seen:
                continue
            seen.add(ev.key)
            evidence.append(ev)

    return CheckResult.timed(
        check_id=check_id,
        name=name,
        status=status,
        summary=_summary(ordered),
        reasons=reasons,
        evidence=evidence,
        started_at=started_at,
        ended_at=ended_at,
        sub_results=ordered,
    )


def _summary(ordered: Sequence[SubResult]) -> str:
    counts: Dict[Status, int] = {s: 0 for s in Status}
    for sub in ordered:
        counts[sub.status] += 1
    text = f"{counts[Status.GREEN]}/{len(ordered)} sub-checks green"
    failing = [
        f"{sub.id}={sub.status.value}{'' if sub.required else ' (optional)'}"
        for sub in ordered
        if sub.status is not Status.GREEN
    ]
    if failing:
        text += " (" + ", ".join(failing) + ")"
    return text
