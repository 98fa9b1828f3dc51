"""Shared machinery for readiness checks.

Every check evaluates existence -> correctness -> freshness and returns
exactly one ``CheckResult``. Single-part checks implement ``evaluate``;
multi-part checks implement ``evaluate_sub`` and let the aggregator fold.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from readiness.common.utils import age_of, format_duration
from readiness.engine.aggregator import aggregate
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import AdapterError, AdapterTimeout
from readiness.engine.policy import CheckPolicy, SubCheckPolicy
from readiness.engine.types import CheckResult, Evidence, Status, SubResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

STALE_REASON = "stale evidence"


@dataclass(frozen=True)
class Verdict:
    status: Status
    summary: str
    reasons: Tuple[str, ...] = ()
    evidence: Tuple[Evidence, ...] = ()


def missing_reason(exc: AdapterError) -> str:
    return f"evidence missing ({exc.describe()})"


def missing_status(sub: SubCheckPolicy) -> Status:
    """Status of a sub-check that found no evidence: RED if required, YELLOW if optional."""
    return Status.RED if sub.required else Status.YELLOW


def staleness(ts: Optional[datetime], threshold: timedelta, now: datetime) -> Optional[str]:
    """Return a stale-evidence reason, or ``None`` when *ts* is within *threshold*.

    An unknown timestamp cannot be shown to be fresh and counts as stale.
    """
    age = age_of(ts, now)
    if age is None:
        return f"{STALE_REASON}: timestamp unknown"
    if age > threshold:
        return f"{STALE_REASON}: {format_duration(age)} old, threshold {format_duration(threshold)}"
    return None


class BaseCheck:
    check_id: str = ""
    name: str = ""
    REQUIRED_PARAMS: Tuple[str, ...] = ()
    SUB_CHECKS: Tuple[str, ...] = ()

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        """Check-specific policy validation; return human-readable problems."""
        return []

    def run(self, context: ExecutionContext) -> CheckResult:
        started = context.now()
        policy = context.policy.check(self.check_id)
        verdict = self.evaluate(context, policy)
        result = CheckResult.timed(
            check_id=self.check_id,
            name=self.name,
            status=verdict.status,
            summary=verdict.summary,
            reasons=verdict.reasons,
            evidence=verdict.evidence,
            started_at=started,
            ended_at=context.now(),
        )
        self._log(result)
        return result

    def evaluate(self, context: ExecutionContext, policy: CheckPolicy) -> Verdict:
        raise NotImplementedError

    def adapter(self, context: ExecutionContext, name: str) -> Any:
        handle = getattr(context.adapters, name, None)
        if handle is None:
            raise AdapterError(f"{name} adapter not configured", source_system=name)
        return handle

    def fetch(
        self,
        context: ExecutionContext,
        source_system: str,
        call: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run one adapter call under the check's policy timeout.

        A call that outlives the timeout raises ``AdapterTimeout``; its worker
        thread is abandoned rather than joined.
        """
        timeout_s = context.policy.timeout(self.check_id).total_seconds()
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.check_id}-fetch")
        try:
            future = pool.submit(call, *args, **kwargs)
            try:
                return future.result(timeout=timeout_s)
            except FutureTimeout:
                future.cancel()
                raise AdapterTimeout(
                    f"no response within {format_duration(timedelta(seconds=timeout_s))}",
                    source_system=source_system,
                ) from None
        finally:
            pool.shutdown(wait=False)

    def _log(self, result: CheckResult) -> None:
        if result.status is Status.GREEN:
            logger.info("%s: GREEN (%s)", result.id, result.summary)
        else:
            logger.info("%s: %s (%s)", result.id, result.status.value, "; ".join(result.reasons))


class MultiPartCheck(BaseCheck):
    """A check made of named sub-checks folded by the aggregator."""

    def run(self, context: ExecutionContext) -> CheckResult:
        started = context.now()
        policy = context.policy.check(self.check_id)
        results: Dict[str, SubResult] = {}
        for sub_policy in policy.sub_checks:
            results[sub_policy.id] = self.evaluate_sub(context, policy, sub_policy)
        result = aggregate(
            check_id=self.check_id,
            name=self.name,
            sub_results=results,
            declared=policy.sub_checks,
            started_at=started,
            ended_at=context.now(),
        )
        self._log(result)
        return result

    def evaluate_sub(
        self,
        context: ExecutionContext,
        policy: CheckPolicy,
        sub_policy: SubCheckPolicy,
    ) -> SubResult:
        raise NotImplementedError


def missing_params(params: Any, names: Sequence[str]) -> List[str]:
    return [name for name in names if params.get(name) in (None, "")]
