"""Runs every registered check and folds the results into one report.

- Checks run concurrently on a thread pool over the shared, read-only
  ``ExecutionContext``.
- A check that raises is recorded as RED with the cause; siblings continue.
- On cancellation, unstarted checks are dropped, in-flight checks get a
  bounded grace period, and anything unfinished is RED
  ("evaluation incomplete").
- The overall status is only computed after every check has an outcome.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence, Set, Type

from readiness import __version__
from readiness.checks import DEFAULT_REGISTRY, BaseCheck
from readiness.common.cancellation import CancellationToken
from readiness.engine.aggregator import INCOMPLETE_REASON
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import CheckInternalError
from readiness.engine.report import ReadinessReport
from readiness.engine.types import CheckResult, Status

logger = logging.getLogger(__name__)


class Runner:
    def __init__(
        self,
        registry: Sequence[Type[BaseCheck]] = DEFAULT_REGISTRY,
        max_workers: Optional[int] = None,
        grace_period_s: float = 10.0,
        cancel_token: Optional[CancellationToken] = None,
        poll_interval_s: float = 0.2,
    ):
        ids = [cls.check_id for cls in registry]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate check ids in registry: {ids}")
        self._registry = tuple(registry)
        self._max_workers = max_workers
        self._grace_period_s = max(0.0, float(grace_period_s))
        self._cancel = cancel_token or CancellationToken()
        self._poll_interval_s = max(0.01, float(poll_interval_s))

    @property
    def check_ids(self) -> List[str]:
        return [cls.check_id for cls in self._registry]

    def execute(self, context: ExecutionContext) -> ReadinessReport:
        checks = [cls() for cls in self._registry]
        required = context.policy.required_flags(c.check_id for c in checks)
        results: Dict[str, CheckResult] = {}

        workers = self._max_workers or max(1, len(checks))
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="readiness-check")
        futures: Dict[Future, BaseCheck] = {}
        try:
            for check in checks:
                if self._cancel.requested:
                    break
                futures[pool.submit(self._run_one, check, context)] = check

            pending: Set[Future] = set(futures)
            while pending and not self._cancel.requested:
                done, pending = wait(pending, timeout=self._poll_interval_s, return_when=FIRST_COMPLETED)
                self._collect(done, futures, results)

            if pending:
                for future in pending:
                    future.cancel()
                still_running = {f for f in pending if not f.cancelled()}
                logger.warning(
                    "Cancellation requested; waiting up to %.1fs for %d running check(s)",
                    self._grace_period_s,
                    len(still_running),
                )
                done, _ = wait(still_running, timeout=self._grace_period_s)
                self._collect(done, futures, results)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        ordered: List[CheckResult] = []
        for check in checks:
            result = results.get(check.check_id)
            if result is None:
                result = self._failed_result(check, context, INCOMPLETE_REASON)
            ordered.append(result)

        incomplete = len(results) < len(checks)
        report = ReadinessReport(
            release=context.release,
            checks=ordered,
            required=required,
            generated_at=context.now(),
            build_id=context.build_id,
            incomplete=incomplete,
            metadata={
                "engine_version": __version__,
                "cancel_reason": self._cancel.reason if incomplete else "",
            },
        )
        logger.info(
            "Readiness for %s %s: %s (RED=%d YELLOW=%d GREEN=%d)",
            context.release.service,
            context.release.version,
            report.overall_status.value,
            report.summary["RED"],
            report.summary["YELLOW"],
            report.summary["GREEN"],
        )
        return report

    @staticmethod
    def _collect(done: Set[Future], futures: Dict[Future, BaseCheck], results: Dict[str, CheckResult]) -> None:
        for future in done:
            if future.cancelled():
                continue
            results[futures[future].check_id] = future.result()

    def _run_one(self, check: BaseCheck, context: ExecutionContext) -> CheckResult:
        try:
            result = check.run(context)
            if result.id != check.check_id:
                raise ValueError(f"check returned result for {result.id!r}")
            return result
        except Exception as exc:
            error = CheckInternalError(check.check_id, exc)
            logger.exception("Check %s failed internally", check.check_id)
            return self._failed_result(check, context, f"internal error: {error}")

    @staticmethod
    def _failed_result(check: BaseCheck, context: ExecutionContext, reason: str) -> CheckResult:
        now = context.now()
        return CheckResult.timed(
            check_id=check.check_id,
            name=check.name,
            status=Status.RED,
            summary=reason,
            reasons=(reason,),
            evidence=(),
            started_at=now,
            ended_at=now,
        )
