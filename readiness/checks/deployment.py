"""ArgoCD non-prod deployment check.

Decision order:
  1. application exists
  2. sync.status == Synced (any other value is RED whatever the health)
  3. deployed revision matches the release commit / version
  4. health: Healthy -> GREEN; Progressing/Degraded/Suspended inside the
     allowed degraded window -> YELLOW, outside it -> RED; anything else RED
  5. freshness of the retrieved state (Healthy but stale -> YELLOW)
"""
from __future__ import annotations

from datetime import timedelta
from typing import List

from readiness.adapters.base import ArgoAppState
from readiness.checks.base import BaseCheck, Verdict, missing_reason, staleness
from readiness.common.utils import age_of, format_duration, parse_duration
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import AdapterError, NotFound
from readiness.engine.policy import CheckPolicy
from readiness.engine.types import Evidence, ReleaseInfo, Status

DEFAULT_DEGRADED_WINDOW = timedelta(minutes=15)
SYNCED = "Synced"
HEALTHY = "Healthy"
WINDOWED_HEALTH = frozenset({"Progressing", "Degraded", "Suspended"})
MIN_COMMIT_PREFIX = 7


def revision_matches(revision: str, release: ReleaseInfo) -> bool:
    """True when *revision* is the release commit (or a 7+ char prefix) or its version tag."""
    rev = (revision or "").strip()
    if not rev:
        return False
    commit = release.commit.strip().lower()
    if commit:
        low = rev.lower()
        if low == commit:
            return True
        shorter, longer = sorted((low, commit), key=len)
        if len(shorter) >= MIN_COMMIT_PREFIX and longer.startswith(shorter):
            return True
    version = release.version.strip()
    return bool(version) and rev in {version, f"v{version}"}


def _evidence(app: ArgoAppState) -> Evidence:
    return Evidence(
        type="argocd_application",
        source_system="argocd",
        identifier=app.name,
        timestamp=app.retrieved_at,
        url=app.url,
        details={
            "sync_status": app.sync_status,
            "health_status": app.health_status,
            "revision": app.revision,
            "health_changed_at": app.health_changed_at.isoformat() if app.health_changed_at else None,
        },
    )


class DeploymentCheck(BaseCheck):
    check_id = "deployment"
    name = "ArgoCD non-prod deployment"
    REQUIRED_PARAMS = ("app",)

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        window = policy.param("degraded_window")
        if window is None:
            return []
        try:
            if parse_duration(window).total_seconds() < 0:
                return ["degraded_window must not be negative"]
        except ValueError as exc:
            return [f"degraded_window: {exc}"]
        return []

    def evaluate(self, context: ExecutionContext, policy: CheckPolicy) -> Verdict:
        app_name = str(policy.param("app"))
        window_raw = policy.param("degraded_window")
        window = parse_duration(window_raw) if window_raw is not None else DEFAULT_DEGRADED_WINDOW

        try:
            argocd = self.adapter(context, "argocd")
            app = self.fetch(context, "argocd", argocd.application, app_name)
        except NotFound:
            return Verdict(Status.RED, f"ArgoCD application {app_name} not found", ("application not found",))
        except AdapterError as exc:
            return Verdict(Status.RED, f"ArgoCD application {app_name} unavailable", (missing_reason(exc),))

        evidence = (_evidence(app),)
        release = context.release

        if app.sync_status != SYNCED:
            return Verdict(
                Status.RED,
                f"{app_name} is {app.sync_status}",
                (f"sync status is {app.sync_status}, expected {SYNCED}",),
                evidence,
            )

        if not revision_matches(app.revision, release):
            expected = release.commit or release.version
            return Verdict(
                Status.RED,
                f"{app_name} runs {app.revision or 'no revision'}",
                (f"revision mismatch: deployed {app.revision or '<none>'}, expected {expected}",),
                evidence,
            )

        now = context.now()
        if app.health_status == HEALTHY:
            stale = staleness(app.retrieved_at, policy.freshness_threshold, now)
            if stale:
                return Verdict(Status.YELLOW, f"{app_name} healthy but state is stale", (stale,), evidence)
            return Verdict(Status.GREEN, f"{app_name} synced and healthy at {app.revision}", (), evidence)

        if app.health_status in WINDOWED_HEALTH:
            degraded_for = age_of(app.health_changed_at, now)
            if degraded_for is None:
                return Verdict(
                    Status.RED,
                    f"{app_name} is {app.health_status}",
                    (f"health {app.health_status} since unknown time, cannot apply degraded window",),
                    evidence,
                )
            if degraded_for <= window:
                return Verdict(
                    Status.YELLOW,
                    f"{app_name} is {app.health_status} within allowed window",
                    (
                        f"health {app.health_status} for {format_duration(degraded_for)}, "
                        f"within {format_duration(window)} window",
                    ),
                    evidence,
                )
            return Verdict(
                Status.RED,
                f"{app_name} is {app.health_status}",
                (
                    f"health {app.health_status} for {format_duration(degraded_for)}, "
                    f"exceeds {format_duration(window)} window",
                ),
                evidence,
            )

        return Verdict(
            Status.RED,
            f"{app_name} is {app.health_status}",
            (f"health status is {app.health_status}",),
            evidence,
        )
